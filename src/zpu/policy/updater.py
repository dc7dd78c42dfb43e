"""
Policy updater: drives the per-domain fetch / validate / write pipeline.

For each domain::

    etag = get_etag(...)                      # cached, still-valid version
    data = zts.get_domain_signed_policy_data(domain, etag)
    data is None and etag   → unchanged
    data is None and not etag → error (an unconditional fetch must return data)
    otherwise               → validate_signed_policies → write_policies

Domains are independent: a failure is recorded against its domain and the
run moves on.  After every domain has finished, the metrics pass runs (if
configured) and a single :class:`PolicySyncError` names every failed domain.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from pathlib import Path

from zpu.clients.base import KeyAuthorityClient, PolicyDistributionClient
from zpu.core.config import ZpuConfig
from zpu.core.exceptions import (
    FetchError,
    MetricsError,
    PersistError,
    PolicySyncError,
    PolicyValidationError,
    RemoteError,
)
from zpu.metrics.aggregator import post_all_domain_metrics
from zpu.policy.cache import get_etag
from zpu.policy.keys import KeyResolver
from zpu.policy.validator import validate_signed_policies
from zpu.policy.writer import write_policies

logger = logging.getLogger(__name__)


class DomainStatus(StrEnum):
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    FAILED = "failed"


@dataclass(frozen=True)
class DomainOutcome:
    domain: str
    status: DomainStatus
    error: Exception | None = None
    path: Path | None = None


@dataclass
class SyncReport:
    """Per-domain outcomes of one run, in configured domain order."""

    outcomes: list[DomainOutcome] = field(default_factory=list)
    metrics_reported: list[str] = field(default_factory=list)
    metrics_error: MetricsError | None = None

    @property
    def failed(self) -> list[DomainOutcome]:
        return [o for o in self.outcomes if o.status is DomainStatus.FAILED]

    @property
    def failed_domains(self) -> list[str]:
        return [o.domain for o in self.failed]

    @property
    def ok(self) -> bool:
        return not self.failed

    def raise_for_failures(self) -> None:
        if self.failed:
            raise PolicySyncError({o.domain: o.error for o in self.failed}, report=self)


def get_policies(
    domain: str,
    config: ZpuConfig,
    zts: PolicyDistributionClient,
    resolver: KeyResolver,
    now: datetime | None = None,
) -> DomainOutcome:
    """
    Bring the policy file for ``domain`` up to date.

    Raises:
        FetchError: if ZTS cannot be reached or returned nothing when it must.
        PolicyValidationError: if the fetched bundle cannot be trusted.
        PersistError: if the bundle cannot be written.
    """
    logger.info("Getting policies for domain: %s", domain)
    etag = get_etag(domain, config, resolver, now=now)

    try:
        data = zts.get_domain_signed_policy_data(domain, etag)
    except RemoteError as exc:
        raise FetchError(
            f"Failed to get domain signed policy data for domain: {domain}, Error: {exc}"
        ) from exc

    if data is None:
        if etag:
            logger.info("Policies not updated since last fetch for domain: %s", domain)
            return DomainOutcome(domain, DomainStatus.UNCHANGED)
        raise FetchError(f"Empty policies data returned for domain: {domain}")

    validate_signed_policies(data, resolver, now=now)
    path = write_policies(data, domain, config.policy_dir, config.tmp_dir)
    logger.info("Policies for domain: %s successfully written", domain)
    return DomainOutcome(domain, DomainStatus.UPDATED, path=path)


def _run_domain(
    domain: str,
    config: ZpuConfig,
    zts: PolicyDistributionClient,
    resolver: KeyResolver,
    now: datetime | None,
) -> DomainOutcome:
    try:
        return get_policies(domain, config, zts, resolver, now=now)
    except (FetchError, PolicyValidationError, PersistError) as exc:
        logger.error("Failed to get policies for domain: %s, Error: %s", domain, exc)
        return DomainOutcome(domain, DomainStatus.FAILED, error=exc)


def sync_policies(
    domains: Sequence[str],
    config: ZpuConfig,
    zts: PolicyDistributionClient,
    resolver: KeyResolver,
    now: datetime | None = None,
) -> SyncReport:
    """
    Update every domain in ``domains`` and collect the outcomes.

    With ``sync.workers > 1`` domains run on a thread pool; the report is
    built only after all of them have finished, in the order given.
    """
    workers = min(config.sync.workers, max(len(domains), 1))
    if workers <= 1:
        outcomes = [_run_domain(d, config, zts, resolver, now) for d in domains]
    else:
        # A domain listed twice runs once so two workers never share its temp file
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="zpu-sync") as pool:
            futures = {
                d: pool.submit(_run_domain, d, config, zts, resolver, now)
                for d in dict.fromkeys(domains)
            }
            outcomes = [futures[d].result() for d in domains]
    return SyncReport(outcomes=outcomes)


def report_metrics(config: ZpuConfig, zts: PolicyDistributionClient, report: SyncReport) -> None:
    """Run the metrics pass if a metrics directory is configured.  Never raises."""
    metrics_dir = config.metrics_path
    if metrics_dir is None:
        return
    try:
        report.metrics_reported = post_all_domain_metrics(metrics_dir, zts)
    except MetricsError as exc:
        logger.error("Posting of metrics to ZTS failed, Error: %s", exc)
        report.metrics_error = exc


def update_policies(
    config: ZpuConfig,
    zts: PolicyDistributionClient,
    zms: KeyAuthorityClient,
    now: datetime | None = None,
) -> SyncReport:
    """
    Run one full update cycle: every domain, then metrics.

    Raises:
        ConfigError: before any domain is processed, if required options
            are missing.
        PolicySyncError: after the full cycle, if any domain failed.
    """
    config.check_required()
    resolver = KeyResolver(config, zms)
    report = sync_policies(config.domain_list, config, zts, resolver, now=now)
    report_metrics(config, zts, report)
    report.raise_for_failures()
    return report
