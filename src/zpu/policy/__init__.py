"""
Policy pipeline: key resolution, signature chain validation, cache probe,
atomic writer, and the per-domain update orchestrator.

Usage::

    resolver = KeyResolver(config, zms)
    report = sync_policies(config.domain_list, config, zts, resolver)
    report.raise_for_failures()
"""

from __future__ import annotations

from zpu.policy.cache import CacheProbeResult, CacheState, get_etag, probe_cache
from zpu.policy.keys import KeyResolver
from zpu.policy.updater import (
    DomainOutcome,
    DomainStatus,
    SyncReport,
    get_policies,
    sync_policies,
    update_policies,
)
from zpu.policy.validator import validate_signed_policies
from zpu.policy.writer import write_policies

__all__ = [
    "CacheProbeResult",
    "CacheState",
    "DomainOutcome",
    "DomainStatus",
    "KeyResolver",
    "SyncReport",
    "get_etag",
    "get_policies",
    "probe_cache",
    "sync_policies",
    "update_policies",
    "validate_signed_policies",
    "write_policies",
]
