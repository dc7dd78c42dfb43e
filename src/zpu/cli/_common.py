"""Helpers shared by CLI commands."""

from __future__ import annotations

import sys

from rich.console import Console

from zpu.core.config import ZpuConfig, _config_file_path, load_config
from zpu.core.constants import ExitCode
from zpu.core.exceptions import ConfigError


def load_config_or_exit(console: Console) -> ZpuConfig:
    """Load the config, or print the problem and exit with CONFIG_ERROR."""
    try:
        return load_config(_config_file_path())
    except ConfigError as exc:
        console.print(f"[red]Config error:[/red] {exc}")
        sys.exit(ExitCode.CONFIG_ERROR)
