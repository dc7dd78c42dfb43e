"""ZPU configuration: Pydantic model, load, and save."""

from __future__ import annotations

import contextlib
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from zpu.core.constants import (
    CONFIG_FILENAME,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_POLICY_FILE_DIR,
    DEFAULT_TMP_POLICY_FILE_DIR,
    MAX_SYNC_WORKERS,
    ZPU_DIR_NAME,
)
from zpu.core.exceptions import ConfigError, ConfigNotFoundError
from zpu.crypto.ybase64 import ybase64_decode


def zpu_dir() -> Path:
    """Return the ZPU config directory (~/.zpu)."""
    return Path.home() / ZPU_DIR_NAME


def _decode_public_key(value: str) -> str:
    """Accept a PEM key as-is, or a YBase64-encoded PEM as published by ZMS."""
    text = value.strip()
    if text.startswith("-----BEGIN"):
        return text
    try:
        decoded = ybase64_decode(text).decode("utf-8")
    except (ValueError, UnicodeDecodeError) as exc:
        raise ValueError(f"public key is neither PEM nor ybase64-encoded PEM: {exc}") from exc
    if "-----BEGIN" not in decoded:
        raise ValueError("decoded public key is not PEM")
    return decoded


# ---------------------------------------------------------------------------
# Sub-models
# ---------------------------------------------------------------------------


class TlsConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    ca_cert: str = ""  # empty → system trust store
    cert_file: str = ""
    key_file: str = ""

    @model_validator(mode="after")
    def cert_and_key_together(self) -> TlsConfig:
        if bool(self.cert_file) != bool(self.key_file):
            raise ValueError("tls.cert_file and tls.key_file must be set together")
        return self


class HttpConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http.timeout_seconds must be positive")
        return v


class SyncConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    workers: int = 1

    @field_validator("workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        if not (1 <= v <= MAX_SYNC_WORKERS):
            raise ValueError(f"sync.workers must be between 1 and {MAX_SYNC_WORKERS}")
        return v


class LoggingConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    format: str = "text"  # "text" | "json"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v not in ("text", "json"):
            raise ValueError("Log format must be 'text' or 'json'")
        return v


# ---------------------------------------------------------------------------
# Root config
# ---------------------------------------------------------------------------


class ZpuConfig(BaseModel):
    """Root ZPU configuration model.  Immutable once loaded."""

    model_config = ConfigDict(frozen=True)

    domains: str = ""
    zts_url: str = ""
    zms_url: str = ""
    policy_file_dir: str = DEFAULT_POLICY_FILE_DIR
    tmp_policy_file_dir: str = DEFAULT_TMP_POLICY_FILE_DIR
    metrics_dir: str = ""  # empty → metrics reporting disabled
    startup_delay_seconds: int = 0

    # keyId → PEM public key; consulted before any ZMS lookup
    zts_public_keys: dict[str, str] = Field(default_factory=dict)
    zms_public_keys: dict[str, str] = Field(default_factory=dict)

    tls: TlsConfig = Field(default_factory=TlsConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("domains", mode="before")
    @classmethod
    def join_domain_list(cls, v: Any) -> Any:
        """Accept both a list and a comma-separated string."""
        if isinstance(v, (list, tuple)):
            return ",".join(str(d) for d in v)
        return v

    @field_validator("zts_public_keys", "zms_public_keys")
    @classmethod
    def decode_public_keys(cls, v: dict[str, str]) -> dict[str, str]:
        return {key_id: _decode_public_key(key) for key_id, key in v.items()}

    @field_validator("startup_delay_seconds")
    @classmethod
    def validate_startup_delay(cls, v: int) -> int:
        if v < 0:
            raise ValueError("startup_delay_seconds cannot be negative")
        return v

    @property
    def domain_list(self) -> list[str]:
        """Configured domains in order, blanks dropped, duplicates kept."""
        return [d.strip() for d in self.domains.split(",") if d.strip()]

    @property
    def policy_dir(self) -> Path:
        return Path(self.policy_file_dir).expanduser()

    @property
    def tmp_dir(self) -> Path:
        return Path(self.tmp_policy_file_dir).expanduser()

    @property
    def metrics_path(self) -> Path | None:
        if not self.metrics_dir:
            return None
        return Path(self.metrics_dir).expanduser()

    def get_zts_public_key(self, key_id: str) -> str:
        return self.zts_public_keys.get(key_id, "")

    def get_zms_public_key(self, key_id: str) -> str:
        return self.zms_public_keys.get(key_id, "")

    def check_required(self) -> None:
        """
        Verify the options a policy update cannot run without.

        Raises:
            ConfigError: naming the first missing option.
        """
        if not self.domain_list:
            raise ConfigError("No domain list to process from configuration")
        if not self.zms_url:
            raise ConfigError("Empty zms_url in configuration")
        if not self.zts_url:
            raise ConfigError("Empty zts_url in configuration")
        if not self.tmp_policy_file_dir:
            raise ConfigError("Empty tmp_policy_file_dir in configuration")


# ---------------------------------------------------------------------------
# Load / save
# ---------------------------------------------------------------------------


def _config_file_path() -> Path:
    if env_path := os.environ.get("ZPU_CONFIG"):
        return Path(env_path)
    return zpu_dir() / CONFIG_FILENAME


def load_config(path: Path | None = None) -> ZpuConfig:
    """
    Load ZpuConfig from TOML file, overlaid with environment variables.

    Priority (highest to lowest):
      1. Environment variables (ZPU_*)
      2. Config file (~/.zpu/config.toml, or $ZPU_CONFIG)
    """
    import tomllib

    cfg_path = path or _config_file_path()

    if not cfg_path.exists():
        raise ConfigNotFoundError(f"ZPU is not configured.\n(Config file not found: {cfg_path})")

    try:
        with open(cfg_path, "rb") as f:
            data = tomllib.load(f)
    except Exception as exc:
        raise ConfigError(f"Cannot read config file {cfg_path}: {exc}") from exc

    _apply_env_overrides(data)

    try:
        return ZpuConfig.model_validate(data)
    except Exception as exc:
        raise ConfigError(f"Invalid config at {cfg_path}: {exc}") from exc


_ENV_OVERRIDES = {
    "ZPU_DOMAINS": "domains",
    "ZPU_ZTS_URL": "zts_url",
    "ZPU_ZMS_URL": "zms_url",
    "ZPU_POLICY_FILE_DIR": "policy_file_dir",
    "ZPU_TMP_POLICY_FILE_DIR": "tmp_policy_file_dir",
    "ZPU_METRICS_DIR": "metrics_dir",
}


def _apply_env_overrides(data: dict[str, Any]) -> None:
    """Overlay ZPU_* environment variables onto the parsed TOML data."""
    for env_name, key in _ENV_OVERRIDES.items():
        if value := os.environ.get(env_name):
            data[key] = value
    if delay := os.environ.get("ZPU_STARTUP_DELAY_SECONDS"):
        data["startup_delay_seconds"] = delay
    if level := os.environ.get("ZPU_LOG_LEVEL"):
        data.setdefault("logging", {})["level"] = level


def save_config(config: ZpuConfig, path: Path | None = None) -> Path:
    """
    Write ``config`` as TOML, keeping only settings that differ from the defaults.

    The file is created with mode 0600 and moved into place in one step.

    Raises:
        ConfigError: if the file cannot be written.
    """
    import tomli_w

    cfg_path = path or _config_file_path()
    staged = cfg_path.with_name(cfg_path.name + ".new")
    payload = tomli_w.dumps(config.model_dump(exclude_defaults=True))

    try:
        cfg_path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        staged.unlink(missing_ok=True)
        fd = os.open(staged, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(payload)
        os.replace(staged, cfg_path)
    except OSError as exc:
        with contextlib.suppress(OSError):
            staged.unlink()
        raise ConfigError(f"Cannot write config to {cfg_path}: {exc}") from exc
    return cfg_path
