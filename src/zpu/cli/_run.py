"""zpu run / zpu metrics: one update cycle."""

from __future__ import annotations

import json
import sys
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from zpu.cli._common import load_config_or_exit
from zpu.clients.http import ZMSClient, ZTSClient
from zpu.core.constants import ExitCode
from zpu.core.exceptions import ConfigError, MetricsError, PolicySyncError
from zpu.core.log import configure_logging
from zpu.metrics.aggregator import post_all_domain_metrics
from zpu.policy.updater import DomainStatus, SyncReport, update_policies

_STATUS_STYLE = {
    DomainStatus.UPDATED: "[green]updated[/green]",
    DomainStatus.UNCHANGED: "[dim]unchanged[/dim]",
    DomainStatus.FAILED: "[red]failed[/red]",
}


def cmd_run(domains: str, as_json: bool, console: Console) -> None:
    config = load_config_or_exit(console)
    if domains:
        config = config.model_copy(update={"domains": domains})
    configure_logging(config.logging)

    try:
        with ZTSClient.from_config(config) as zts, ZMSClient.from_config(config) as zms:
            report = update_policies(config, zts, zms)
    except ConfigError as exc:
        console.print(f"[red]Config error:[/red] {exc}")
        sys.exit(ExitCode.CONFIG_ERROR)
    except PolicySyncError as exc:
        report = exc.report

    if as_json:
        _echo_json(_report_to_dict(report))
    else:
        _print_report(report, console)

    sys.exit(ExitCode.SUCCESS if report.ok else ExitCode.ERROR)


def cmd_metrics(as_json: bool, console: Console) -> None:
    config = load_config_or_exit(console)
    configure_logging(config.logging)

    metrics_dir = config.metrics_path
    if metrics_dir is None:
        console.print("[yellow]metrics_dir is not configured; nothing to report.[/yellow]")
        return

    try:
        with ZTSClient.from_config(config) as zts:
            reported = post_all_domain_metrics(metrics_dir, zts)
    except ConfigError as exc:
        console.print(f"[red]Config error:[/red] {exc}")
        sys.exit(ExitCode.CONFIG_ERROR)
    except MetricsError as exc:
        if as_json:
            _echo_json({"reported": [], "error": str(exc)})
        else:
            console.print(f"[red]Metrics error:[/red] {exc}")
        sys.exit(ExitCode.ERROR)

    if as_json:
        _echo_json({"reported": reported, "error": None})
    elif reported:
        console.print(f"Reported metrics for {len(reported)} domain(s): {', '.join(reported)}")
    else:
        console.print("No metric snapshots to report.")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _echo_json(data: dict[str, Any]) -> None:
    click.echo(json.dumps(data, indent=2))


def _report_to_dict(report: SyncReport) -> dict[str, Any]:
    return {
        "ok": report.ok,
        "domains": [
            {
                "domain": o.domain,
                "status": o.status.value,
                "error": str(o.error) if o.error else None,
                "path": str(o.path) if o.path else None,
            }
            for o in report.outcomes
        ],
        "failed_domains": report.failed_domains,
        "metrics_reported": report.metrics_reported,
        "metrics_error": str(report.metrics_error) if report.metrics_error else None,
    }


def _print_report(report: SyncReport, console: Console) -> None:
    table = Table(title="Policy update")
    table.add_column("Domain", style="cyan")
    table.add_column("Status")
    table.add_column("Detail")
    for o in report.outcomes:
        detail = str(o.error) if o.error else (str(o.path) if o.path else "")
        table.add_row(o.domain, _STATUS_STYLE[o.status], detail)
    console.print(table)

    if report.metrics_error:
        console.print(f"[yellow]Metrics not reported:[/yellow] {report.metrics_error}")
    elif report.metrics_reported:
        console.print(f"Metrics reported for: {', '.join(report.metrics_reported)}")

    if report.ok:
        console.print("[green]All domains up to date.[/green]")
    else:
        names = " ".join(f'"{d}"' for d in report.failed_domains)
        console.print(f"[red]Failed to get policies for domains:[/red] {names}")
