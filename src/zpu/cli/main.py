"""
ZPU CLI entry point.

Commands:
  zpu run [--domains LIST]    fetch, verify and cache policies, then report metrics
  zpu metrics                 report metric snapshots only
  zpu verify <policy-file>    check the signature chain of a cached policy file
  zpu config show|validate    view or validate configuration
  zpu doctor [--fix]          environment and configuration health check
  zpu service install|show    systemd timer for periodic runs
  zpu version                 show version information
"""

from __future__ import annotations

import click
from rich.console import Console

from zpu import __version__

console = Console()


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "--version", "-V", message="zpu %(version)s")
def cli() -> None:
    """ZPU: signed policy updater for the local enforcement point."""


# ---------------------------------------------------------------------------
# run / metrics / verify
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--domains", default="", help="Comma-separated domains (overrides config)")
@click.option("--json", "as_json", is_flag=True, default=False)
def run(domains: str, as_json: bool) -> None:
    """Update policy files for every configured domain."""
    from zpu.cli._run import cmd_run

    cmd_run(domains=domains, as_json=as_json, console=console)


@cli.command()
@click.option("--json", "as_json", is_flag=True, default=False)
def metrics(as_json: bool) -> None:
    """Aggregate and report metric snapshots."""
    from zpu.cli._run import cmd_metrics

    cmd_metrics(as_json=as_json, console=console)


@cli.command()
@click.argument("policy_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, default=False)
def verify(policy_file: str, as_json: bool) -> None:
    """Verify expiry and both signatures of a cached policy file."""
    from zpu.cli._verify import cmd_verify

    cmd_verify(policy_file=policy_file, as_json=as_json, console=console)


# ---------------------------------------------------------------------------
# doctor
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--fix", is_flag=True, default=False, help="Create missing directories")
@click.option("--json", "as_json", is_flag=True, default=False)
def doctor(fix: bool, as_json: bool) -> None:
    """Environment and configuration health check."""
    from zpu.cli._doctor import cmd_doctor

    cmd_doctor(fix=fix, as_json=as_json, console=console)


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--json", "as_json", is_flag=True, default=False)
def version(as_json: bool) -> None:
    """Show version information."""
    import platform
    import sys as _sys

    if as_json:
        import json

        click.echo(
            json.dumps(
                {
                    "zpu": __version__,
                    "python": _sys.version.split()[0],
                    "platform": _sys.platform,
                    "arch": platform.machine(),
                },
                indent=2,
            )
        )
    else:
        console.print(f"zpu {__version__}")
        console.print(f"Python {_sys.version.split()[0]}")
        console.print(f"Platform: {_sys.platform} {platform.machine()}")


# ---------------------------------------------------------------------------
# Sub-groups
# ---------------------------------------------------------------------------


def _register_groups() -> None:
    from zpu.cli._config_cmd import config_group
    from zpu.cli._service import service_group

    cli.add_command(config_group)
    cli.add_command(service_group)


_register_groups()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
