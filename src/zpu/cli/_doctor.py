"""zpu doctor: environment and configuration health check."""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

from rich.console import Console

from zpu.core.config import ZpuConfig, _config_file_path, load_config
from zpu.core.constants import ExitCode
from zpu.core.exceptions import ConfigError
from zpu.crypto.verifier import SignatureError, load_public_key


def _check(name: str, ok: bool, detail: str, status: str | None = None) -> dict[str, str]:
    return {"name": name, "status": status or ("pass" if ok else "fail"), "detail": detail}


def _dir_check(name: str, path: Path, fix: bool) -> dict[str, str]:
    if not path.exists() and fix:
        try:
            path.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError as exc:
            return _check(name, False, f"cannot create {path}: {exc}")
    if not path.is_dir():
        return _check(name, False, f"{path} does not exist")
    if not os.access(path, os.W_OK | os.X_OK):
        return _check(name, False, f"{path} is not writable")
    return _check(name, True, str(path))


def _config_checks(config: ZpuConfig, fix: bool) -> list[dict[str, str]]:
    checks = []
    try:
        config.check_required()
        checks.append(_check("Required options", True, f"{len(config.domain_list)} domain(s)"))
    except ConfigError as exc:
        checks.append(_check("Required options", False, str(exc)))

    checks.append(_dir_check("Policy directory", config.policy_dir, fix))
    checks.append(_dir_check("Temp directory", config.tmp_dir, fix))

    # os.replace is only atomic within one filesystem
    if config.policy_dir.is_dir() and config.tmp_dir.is_dir():
        same_fs = config.policy_dir.stat().st_dev == config.tmp_dir.stat().st_dev
        checks.append(
            _check(
                "Atomic rename",
                same_fs,
                "temp and policy directories share a filesystem"
                if same_fs
                else "temp and policy directories are on different filesystems",
            )
        )

    if config.metrics_path is not None:
        checks.append(_dir_check("Metrics directory", config.metrics_path, fix))

    for service, keys in (("zts", config.zts_public_keys), ("zms", config.zms_public_keys)):
        for key_id, pem in sorted(keys.items()):
            try:
                load_public_key(pem)
                checks.append(_check(f"Pinned {service} key {key_id!r}", True, "loads"))
            except SignatureError as exc:
                checks.append(_check(f"Pinned {service} key {key_id!r}", False, str(exc)))
    return checks


def cmd_doctor(fix: bool, as_json: bool, console: Console) -> None:
    checks = [
        _check("Python version", True, sys.version.split()[0]),
        _check("Platform", True, sys.platform),
    ]

    cfg_path = _config_file_path()
    try:
        config = load_config(cfg_path)
        checks.append(_check("Config", True, str(cfg_path)))
        checks.extend(_config_checks(config, fix))
    except ConfigError as exc:
        checks.append(_check("Config", False, str(exc)))

    all_pass = all(c["status"] == "pass" for c in checks)

    if as_json:
        print(json.dumps({"checks": checks, "all_pass": all_pass}, indent=2))
    else:
        console.print("[bold]ZPU Doctor[/bold]\n")
        for c in checks:
            icon = "[green]PASS[/green]" if c["status"] == "pass" else "[red]FAIL[/red]"
            console.print(f"  {icon}  {c['name']}: {c['detail']}")

        console.print()
        if all_pass:
            console.print("[green]All checks passed.[/green]")
        else:
            console.print("[red]Some checks failed. Run with --fix to create missing directories.[/red]")

    if not all_pass:
        sys.exit(ExitCode.ENV_ERROR)
