"""
Metric snapshot aggregation and reporting.

Enforcement processes drop JSON snapshots named ``<domain>_<suffix>`` into
the metrics directory, each mapping a metric type to a count.  A run sums
the counters per domain, posts one report per domain in domain-name order,
and deletes a domain's snapshot files only after its report was accepted.

Delivery is at-least-once: a failure stops the pass, and any domain already
reported keeps its deletions while the rest keep their files for the next
run.  A snapshot that fails to delete after a successful report is counted
again next time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import StrictInt, TypeAdapter, ValidationError

from zpu.clients.base import PolicyDistributionClient
from zpu.core.constants import METRIC_FILE_DELIMITER
from zpu.core.exceptions import MetricsError, RemoteError
from zpu.core.models import DomainMetric, DomainMetrics

logger = logging.getLogger(__name__)

_SNAPSHOT = TypeAdapter(dict[str, StrictInt])


@dataclass
class DomainSnapshot:
    """Summed counters for one domain and the files they came from."""

    domain: str
    counts: dict[str, int] = field(default_factory=dict)
    files: list[Path] = field(default_factory=list)

    def add(self, path: Path, counts: dict[str, int]) -> None:
        for metric_type, value in counts.items():
            self.counts[metric_type] = self.counts.get(metric_type, 0) + value
        self.files.append(path)


def snapshot_domain(filename: str) -> str:
    """Domain token of a snapshot file name: everything before the first ``_``."""
    return filename.split(METRIC_FILE_DELIMITER, 1)[0]


def aggregate_all_domain_metrics(metrics_dir: Path) -> dict[str, DomainSnapshot]:
    """
    Read every snapshot in ``metrics_dir`` and sum counters per domain.

    Raises:
        MetricsError: if the directory or any snapshot cannot be read or
            parsed.  Nothing is aggregated in that case.
    """
    try:
        entries = sorted(p for p in metrics_dir.iterdir() if p.is_file())
    except OSError as exc:
        raise MetricsError(f"Cannot list metrics directory {metrics_dir}: {exc}") from exc

    snapshots: dict[str, DomainSnapshot] = {}
    for path in entries:
        try:
            counts = _SNAPSHOT.validate_json(path.read_bytes())
        except OSError as exc:
            raise MetricsError(f"Failed to read metric file: {path.name}, Error: {exc}") from exc
        except ValidationError as exc:
            raise MetricsError(f"Unmarshalling error for file: {path.name}: {exc}") from exc

        domain = snapshot_domain(path.name)
        snapshots.setdefault(domain, DomainSnapshot(domain)).add(path, counts)
    return snapshots


def build_domain_metrics(domain: str, counts: dict[str, int]) -> DomainMetrics:
    """Build the report payload with metrics ordered by metric type."""
    return DomainMetrics(
        domain_name=domain,
        metric_list=[
            DomainMetric(metric_type=metric_type, metric_val=counts[metric_type])
            for metric_type in sorted(counts)
        ],
    )


def _delete_snapshot_files(snapshot: DomainSnapshot) -> None:
    for path in snapshot.files:
        try:
            path.unlink()
        except FileNotFoundError:
            continue
        except OSError as exc:
            logger.error("Failed to delete file: %s for domain: %s: %s", path, snapshot.domain, exc)


def post_all_domain_metrics(metrics_dir: Path, zts: PolicyDistributionClient) -> list[str]:
    """
    Aggregate snapshots in ``metrics_dir`` and post one report per domain.

    Returns:
        Domains whose metrics were reported, in the order posted.

    Raises:
        MetricsError: on aggregation failure, or on the first rejected report.
    """
    snapshots = aggregate_all_domain_metrics(metrics_dir)
    reported: list[str] = []
    for domain in sorted(snapshots):
        snapshot = snapshots[domain]
        payload = build_domain_metrics(domain, snapshot.counts)
        logger.info("Posting domain metrics for domain %s to ZTS", domain)
        try:
            zts.post_domain_metrics(domain, payload)
        except RemoteError as exc:
            logger.error("Failed to post metrics for domain %s to ZTS: %s", domain, exc)
            raise MetricsError(f"Failed to post metrics for domain {domain}: {exc}") from exc
        _delete_snapshot_files(snapshot)
        reported.append(domain)
    return reported
