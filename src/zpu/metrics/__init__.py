"""Usage metric roll-up: local snapshot files → per-domain totals → ZTS."""

from __future__ import annotations

from zpu.metrics.aggregator import (
    DomainSnapshot,
    aggregate_all_domain_metrics,
    build_domain_metrics,
    post_all_domain_metrics,
)

__all__ = [
    "DomainSnapshot",
    "aggregate_all_domain_metrics",
    "build_domain_metrics",
    "post_all_domain_metrics",
]
