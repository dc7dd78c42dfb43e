"""ZPU constants: filesystem layout, remote service names, and limits."""

from __future__ import annotations

from enum import IntEnum

# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------


class ExitCode(IntEnum):
    SUCCESS = 0
    ERROR = 1
    CONFIG_ERROR = 2
    ENV_ERROR = 3


# ---------------------------------------------------------------------------
# Filesystem layout
# ---------------------------------------------------------------------------

ZPU_DIR_NAME = ".zpu"
CONFIG_FILENAME = "config.toml"

POLICY_FILE_SUFFIX = ".pol"
TMP_POLICY_FILE_SUFFIX = ".tmp"
METRIC_FILE_DELIMITER = "_"

DEFAULT_POLICY_FILE_DIR = "/var/zpe"
DEFAULT_TMP_POLICY_FILE_DIR = "/var/zpe/tmp"

# ---------------------------------------------------------------------------
# Remote services
# ---------------------------------------------------------------------------

ZTS_URL_SUFFIX = "zts/v1"
ZMS_URL_SUFFIX = "zms/v1"

# Public keys for both services are registered under this domain in ZMS
SYSTEM_DOMAIN = "sys.auth"
ZTS_SERVICE = "zts"
ZMS_SERVICE = "zms"

DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0
MAX_SYNC_WORKERS = 32
