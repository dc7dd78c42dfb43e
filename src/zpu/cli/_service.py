"""CLI commands: zpu service install | show."""

from __future__ import annotations

import shutil
import subprocess
import sys

import click
from rich.console import Console

from zpu.core.constants import ExitCode

console = Console()


def _units(interval: str, startup_delay: str) -> tuple[str, str]:
    from zpu.core.config import _config_file_path
    from zpu.os.systemd.service import generate_service_unit, generate_timer_unit

    exec_path = shutil.which("zpu") or f"{sys.executable} -m zpu.cli.main"
    config_path = str(_config_file_path().expanduser().resolve())
    try:
        timer = generate_timer_unit(interval=interval, startup_delay=startup_delay)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc
    return generate_service_unit(exec_path, config_path), timer


@click.group("service")
def service_group() -> None:
    """Run ZPU periodically from a systemd user timer."""


@service_group.command("show")
@click.option("--interval", default="1h", show_default=True, help="Time between runs")
@click.option("--startup-delay", default="2min", show_default=True, help="Delay after boot")
def service_show(interval: str, startup_delay: str) -> None:
    """Print the unit files without installing them."""
    service, timer = _units(interval, startup_delay)
    click.echo("# zpu.service")
    click.echo(service)
    click.echo("# zpu.timer")
    click.echo(timer)


@service_group.command("install")
@click.option("--interval", default="1h", show_default=True, help="Time between runs")
@click.option("--startup-delay", default="2min", show_default=True, help="Delay after boot")
@click.option("--no-enable", is_flag=True, default=False, help="Write units without enabling")
def service_install(interval: str, startup_delay: str, no_enable: bool) -> None:
    """Install and enable the systemd user service and timer."""
    from zpu.os.systemd.service import (
        enable_timer,
        install_units,
        is_systemd_available,
        reload_daemon,
    )

    if not is_systemd_available():
        console.print("[red]systemd user session not available on this system.[/red]")
        sys.exit(ExitCode.ENV_ERROR)

    service, timer = _units(interval, startup_delay)
    service_path, timer_path = install_units(service, timer)
    console.print(f"Wrote {service_path}")
    console.print(f"Wrote {timer_path}")

    if no_enable:
        return
    try:
        reload_daemon()
        enable_timer()
    except subprocess.CalledProcessError as exc:
        console.print(f"[red]systemctl failed:[/red] {exc.stderr.decode(errors='replace').strip()}")
        sys.exit(ExitCode.ENV_ERROR)
    console.print("[green]zpu.timer enabled.[/green]")
