"""
Cache probe: derive the conditional-fetch etag from the cached policy file.

The cached ``<policy_dir>/<domain>.pol`` is read and classified in one
step.  Only a file that decodes, passes the signature chain, and has not
expired (with the startup grace added) yields an etag; every other state
degrades to an unconditional fetch.  A corrupt or foreign cache file never
fails the run: the next successful write replaces it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum
from pathlib import Path

from pydantic import ValidationError

from zpu.core.config import ZpuConfig
from zpu.core.constants import POLICY_FILE_SUFFIX
from zpu.core.exceptions import PolicyExpiredError, PolicyValidationError
from zpu.core.models import DomainSignedPolicyData
from zpu.policy.keys import KeyResolver
from zpu.policy.validator import validate_signed_policies

logger = logging.getLogger(__name__)


class CacheState(StrEnum):
    ABSENT = "absent"  # no cached file
    UNREADABLE = "unreadable"  # cannot be opened or decoded
    UNTRUSTED = "untrusted"  # signature chain does not verify
    EXPIRED = "expired"  # expires + startup delay is in the past
    VALID = "valid"


@dataclass(frozen=True)
class CacheProbeResult:
    state: CacheState
    bundle: DomainSignedPolicyData | None = None
    detail: str = ""

    @property
    def etag(self) -> str:
        """Quoted ``modified`` timestamp of a valid bundle, else empty."""
        if self.state is not CacheState.VALID or self.bundle is None:
            return ""
        modified = self.bundle.signed_policy_data.modified
        if not modified:
            return ""
        return f'"{modified}"'


def policy_file_path(policy_dir: Path, domain: str) -> Path:
    return policy_dir / f"{domain}{POLICY_FILE_SUFFIX}"


def load_policy_file(path: Path) -> DomainSignedPolicyData:
    """
    Read and decode a cached policy file.

    Raises:
        OSError: if the file cannot be read.
        pydantic.ValidationError: if it is not a signed policy document.
    """
    return DomainSignedPolicyData.model_validate_json(path.read_bytes())


def probe_cache(
    domain: str,
    config: ZpuConfig,
    resolver: KeyResolver,
    now: datetime | None = None,
) -> CacheProbeResult:
    """Read ``<policy_dir>/<domain>.pol`` and classify it.  Never raises for cache content."""
    path = policy_file_path(config.policy_dir, domain)
    try:
        bundle = load_policy_file(path)
    except FileNotFoundError:
        return CacheProbeResult(CacheState.ABSENT)
    except (OSError, ValidationError) as exc:
        logger.warning("Ignoring unreadable policy cache %s: %s", path, exc)
        return CacheProbeResult(CacheState.UNREADABLE, detail=str(exc))

    try:
        validate_signed_policies(bundle, resolver, now=now)
    except PolicyExpiredError as exc:
        logger.debug("Cached policies for domain %s are expired: %s", domain, exc)
        return CacheProbeResult(CacheState.EXPIRED, bundle=bundle, detail=str(exc))
    except PolicyValidationError as exc:
        logger.warning("Ignoring untrusted policy cache %s: %s", path, exc)
        return CacheProbeResult(CacheState.UNTRUSTED, bundle=bundle, detail=str(exc))

    grace = timedelta(seconds=config.startup_delay_seconds)
    if bundle.signed_policy_data.is_expired(now, grace=grace):
        return CacheProbeResult(CacheState.EXPIRED, bundle=bundle)

    return CacheProbeResult(CacheState.VALID, bundle=bundle)


def get_etag(
    domain: str,
    config: ZpuConfig,
    resolver: KeyResolver,
    now: datetime | None = None,
) -> str:
    """Etag for a conditional fetch of ``domain``; empty means fetch unconditionally."""
    return probe_cache(domain, config, resolver, now=now).etag
