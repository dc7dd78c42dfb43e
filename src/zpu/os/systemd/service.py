"""
systemd user timer integration for Linux.

ZPU runs to completion and exits; periodic runs come from a systemd timer
driving a oneshot service.  The units run under the current user's
session (not as root).

Service lifecycle::

    zpu service install --interval 1h     # generate + install + enable timer
    systemctl --user start zpu.service    # run one update now
    systemctl --user list-timers zpu.timer
    journalctl --user -u zpu -f           # follow logs

The unit files are written to: ~/.config/systemd/user/zpu.{service,timer}
(respects $XDG_CONFIG_HOME).
"""

from __future__ import annotations

import os
import re
import subprocess
import sys
from pathlib import Path

_SERVICE_NAME = "zpu.service"
_TIMER_NAME = "zpu.timer"

_SERVICE_TEMPLATE = """\
[Unit]
Description=ZPU signed policy updater for the local enforcement point
After=network-online.target
Wants=network-online.target

[Service]
Type=oneshot
ExecStart={exec_path} run
Environment="ZPU_CONFIG={config_path}"
StandardOutput=journal
StandardError=journal
SyslogIdentifier=zpu
"""

_TIMER_TEMPLATE = """\
[Unit]
Description=Periodic ZPU policy update

[Timer]
OnBootSec={startup_delay}
OnUnitActiveSec={interval}
RandomizedDelaySec={jitter}
Persistent=true
Unit=zpu.service

[Install]
WantedBy=timers.target
"""

_TIMESPAN = re.compile(r"^\d+(us|ms|s|sec|m|min|h|hr|d)?$")


def _check_timespan(name: str, value: str) -> str:
    if not _TIMESPAN.fullmatch(value.strip()):
        raise ValueError(f"{name} must be a systemd time span such as 30s, 15min or 1h: {value!r}")
    return value.strip()


def generate_service_unit(exec_path: str, config_path: str) -> str:
    """
    Generate the oneshot service unit that runs a single update.

    Args:
        exec_path:   Absolute path to the ``zpu`` binary.
        config_path: Absolute path to the ZPU config TOML file.
    """
    return _SERVICE_TEMPLATE.format(exec_path=exec_path, config_path=config_path)


def generate_timer_unit(interval: str = "1h", startup_delay: str = "2min", jitter: str = "5min") -> str:
    """
    Generate the timer unit that triggers ``zpu.service`` every ``interval``.

    Raises:
        ValueError: if any argument is not a systemd time span.
    """
    return _TIMER_TEMPLATE.format(
        interval=_check_timespan("interval", interval),
        startup_delay=_check_timespan("startup_delay", startup_delay),
        jitter=_check_timespan("jitter", jitter),
    )


def systemd_user_dir() -> Path:
    """Return the systemd user unit directory (~/.config/systemd/user/)."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME", str(Path.home() / ".config"))
    return Path(xdg_config) / "systemd" / "user"


def install_units(service_content: str, timer_content: str) -> tuple[Path, Path]:
    """
    Write both unit files to the systemd user directory.

    Creates ``~/.config/systemd/user/`` if it does not exist.

    Returns:
        Paths where the service and timer units were written.
    """
    unit_dir = systemd_user_dir()
    unit_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for name, content in ((_SERVICE_NAME, service_content), (_TIMER_NAME, timer_content)):
        path = unit_dir / name
        path.write_text(content, encoding="utf-8")
        path.chmod(0o644)
        written.append(path)
    return written[0], written[1]


def reload_daemon() -> None:
    """Run ``systemctl --user daemon-reload`` to pick up the new unit files."""
    subprocess.run(  # nosec B603 B607
        ["systemctl", "--user", "daemon-reload"],
        check=True,
        capture_output=True,
    )


def enable_timer() -> None:
    """Run ``systemctl --user enable --now zpu.timer``."""
    subprocess.run(  # nosec B603 B607
        ["systemctl", "--user", "enable", "--now", _TIMER_NAME],
        check=True,
        capture_output=True,
    )


def is_systemd_available() -> bool:
    """
    Return True if systemd user sessions are available on the current system.

    Always returns False on non-Linux platforms.
    """
    if not sys.platform.startswith("linux"):
        return False
    try:
        result = subprocess.run(  # nosec B603 B607
            ["systemctl", "--user", "status"],
            capture_output=True,
            timeout=3.0,
        )
        # 0 = running, 3 = degraded / unit not found; both mean systemd is present
        return result.returncode in (0, 3)
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return False
