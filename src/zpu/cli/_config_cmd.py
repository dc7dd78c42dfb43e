"""CLI commands: zpu config init | show | validate."""

from __future__ import annotations

import json
import sys

import click
from rich.console import Console
from rich.markup import escape

from zpu.core.constants import (
    DEFAULT_POLICY_FILE_DIR,
    DEFAULT_TMP_POLICY_FILE_DIR,
    ExitCode,
)

console = Console()


@click.group("config")
def config_group() -> None:
    """View and validate ZPU configuration."""


@config_group.command("init")
@click.option("--domains", required=True, help="Comma-separated domains to keep updated")
@click.option("--zts-url", required=True, help="ZTS base URL")
@click.option("--zms-url", required=True, help="ZMS base URL")
@click.option("--policy-dir", default=DEFAULT_POLICY_FILE_DIR, show_default=True)
@click.option("--tmp-dir", default=DEFAULT_TMP_POLICY_FILE_DIR, show_default=True)
@click.option("--metrics-dir", default="", help="Metric snapshot directory (empty disables)")
@click.option("--startup-delay", type=int, default=0, show_default=True, help="Seconds")
@click.option("--force", is_flag=True, default=False, help="Overwrite an existing config file")
def config_init(
    domains: str,
    zts_url: str,
    zms_url: str,
    policy_dir: str,
    tmp_dir: str,
    metrics_dir: str,
    startup_delay: int,
    force: bool,
) -> None:
    """Write a new config file from the given options."""
    from pydantic import ValidationError

    from zpu.core.config import ZpuConfig, _config_file_path, save_config
    from zpu.core.exceptions import ConfigError

    cfg_path = _config_file_path()
    if cfg_path.exists() and not force:
        console.print(f"[red]Config already exists:[/red] {cfg_path} (use --force to overwrite)")
        sys.exit(ExitCode.CONFIG_ERROR)

    try:
        cfg = ZpuConfig(
            domains=domains,
            zts_url=zts_url,
            zms_url=zms_url,
            policy_file_dir=policy_dir,
            tmp_policy_file_dir=tmp_dir,
            metrics_dir=metrics_dir,
            startup_delay_seconds=startup_delay,
        )
        cfg.check_required()
        save_config(cfg, cfg_path)
    except (ValidationError, ConfigError) as exc:
        console.print(f"[red]Config not written:[/red] {exc}")
        sys.exit(ExitCode.CONFIG_ERROR)

    console.print(f"[green]Config written:[/green] {cfg_path}")


@config_group.command("show")
@click.option("--json", "as_json", is_flag=True, default=False, help="Output as JSON")
def config_show(as_json):
    """Display the current configuration."""
    from zpu.core.config import _config_file_path, load_config

    cfg_path = _config_file_path()
    if not cfg_path.exists():
        console.print(f"[red]Config not found:[/red] {cfg_path}")
        sys.exit(ExitCode.CONFIG_ERROR)

    try:
        cfg = load_config(cfg_path)
    except Exception as exc:
        console.print(f"[red]Config error:[/red] {exc}")
        sys.exit(ExitCode.CONFIG_ERROR)

    data = _config_to_dict(cfg)
    data["_config_path"] = str(cfg_path)

    if as_json:
        click.echo(json.dumps(data, indent=2))
    else:
        _print_config_rich(data, console)


@config_group.command("validate")
def config_validate():
    """Validate the current config file, including required options."""
    from zpu.core.config import _config_file_path, load_config

    cfg_path = _config_file_path()
    if not cfg_path.exists():
        console.print(f"[red]Config not found:[/red] {cfg_path}")
        sys.exit(ExitCode.CONFIG_ERROR)

    try:
        load_config(cfg_path).check_required()
        console.print(f"[green]Config is valid:[/green] {cfg_path}")
    except Exception as exc:
        console.print(f"[red]Config validation failed:[/red] {exc}")
        sys.exit(ExitCode.CONFIG_ERROR)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _config_to_dict(cfg):
    """Serialize ZpuConfig to a plain dict; public keys shown by id only."""
    data = cfg.model_dump(exclude={"zts_public_keys", "zms_public_keys"})
    data["domain_list"] = cfg.domain_list
    data["zts_public_keys"] = sorted(cfg.zts_public_keys)
    data["zms_public_keys"] = sorted(cfg.zms_public_keys)
    return data


def _print_config_rich(data, console):
    """Print config dict in a human-friendly format."""
    path = data.pop("_config_path", "unknown")
    console.print(f"[bold]ZPU Configuration[/bold]  ({path})\n")

    for section, values in data.items():
        if isinstance(values, dict):
            console.print(f"  [cyan]{escape(f'[{section}]')}[/cyan]")
            for k, v in values.items():
                console.print(f"    {k} = {v!r}")
        else:
            console.print(f"  {section} = {values!r}")
    console.print()
