"""zpu verify: check a cached policy file without fetching anything."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console

from zpu.cli._common import load_config_or_exit
from zpu.clients.http import ZMSClient
from zpu.core.constants import ExitCode
from zpu.core.exceptions import ConfigError, PolicyValidationError
from zpu.policy.cache import load_policy_file
from zpu.policy.keys import KeyResolver
from zpu.policy.validator import validate_signed_policies


def cmd_verify(policy_file: str, as_json: bool, console: Console) -> None:
    config = load_config_or_exit(console)
    path = Path(policy_file)

    try:
        data = load_policy_file(path)
    except (OSError, ValidationError) as exc:
        _fail(as_json, console, path, f"Cannot decode policy file: {exc}")
        return

    signed = data.signed_policy_data
    info = {
        "file": str(path),
        "domain": data.domain,
        "modified": signed.modified,
        "expires": signed.expires,
        "key_id": data.key_id,
        "zms_key_id": signed.zms_key_id,
    }

    try:
        with ZMSClient.from_config(config) as zms:
            validate_signed_policies(data, KeyResolver(config, zms))
    except ConfigError as exc:
        console.print(f"[red]Config error:[/red] {exc}")
        sys.exit(ExitCode.CONFIG_ERROR)
    except PolicyValidationError as exc:
        _fail(as_json, console, path, str(exc), info)
        return

    if as_json:
        click.echo(json.dumps({**info, "valid": True, "error": None}, indent=2))
    else:
        console.print(f"[green]Valid:[/green] {path}")
        for key, value in info.items():
            if key != "file":
                console.print(f"  {key:<12} {value}")


def _fail(
    as_json: bool,
    console: Console,
    path: Path,
    message: str,
    info: dict[str, object] | None = None,
) -> None:
    if as_json:
        click.echo(json.dumps({**(info or {"file": str(path)}), "valid": False, "error": message}, indent=2))
    else:
        console.print(f"[red]Invalid:[/red] {path}")
        console.print(f"  {message}")
    sys.exit(ExitCode.ERROR)
