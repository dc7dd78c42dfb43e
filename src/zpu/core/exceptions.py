"""ZPU exception hierarchy."""

from __future__ import annotations


class ZpuError(Exception):
    """Base exception for all ZPU errors."""


class ConfigError(ZpuError):
    """Raised when the configuration is invalid or cannot be read."""


class ConfigNotFoundError(ConfigError):
    """Raised when the configuration file does not exist."""


class RemoteError(ZpuError):
    """Raised by a ZTS/ZMS client when a call fails or returns an error status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class FetchError(ZpuError):
    """Raised when the signed policy data cannot be fetched for a domain."""


class PolicyValidationError(ZpuError):
    """Raised when a signed policy bundle cannot be trusted."""


class PolicyExpiredError(PolicyValidationError):
    """Raised when the bundle's expiry is in the past."""


class KeyResolutionError(PolicyValidationError):
    """Raised when a public key cannot be looked up or decoded."""


class SignatureMismatchError(PolicyValidationError):
    """Raised when a signature in the chain does not verify.

    ``stage`` is 1 for the ZTS signature over the signed policy data and
    2 for the ZMS signature over the policy data alone.
    """

    def __init__(self, message: str, stage: int) -> None:
        super().__init__(message)
        self.stage = stage


class PersistError(ZpuError):
    """Raised when a verified bundle cannot be written to the policy directory."""


class MetricsError(ZpuError):
    """Raised when metric snapshots cannot be aggregated or reported."""


class PolicySyncError(ZpuError):
    """Raised at the end of a run when one or more domains failed."""

    def __init__(self, failures: dict[str, Exception], report: object | None = None) -> None:
        self.failures = dict(failures)
        self.report = report
        names = " ".join(f'"{d}"' for d in self.failures)
        super().__init__(f"Failed to get policies for domains: {names}")

    @property
    def failed_domains(self) -> list[str]:
        return list(self.failures)
