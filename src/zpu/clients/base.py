"""
Client interfaces for the policy distribution (ZTS) and key authority
(ZMS) services.

Contract:
  - Implementations raise :class:`~zpu.core.exceptions.RemoteError` on
    transport failures and non-success responses; callers wrap it into
    the pipeline's own error types
  - No retries; the next scheduled run is the retry
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from zpu.core.models import DomainMetrics, DomainSignedPolicyData, PublicKeyEntry


class PolicyDistributionClient(ABC):
    """Interface for the service serving signed policies and accepting metrics."""

    @abstractmethod
    def get_domain_signed_policy_data(
        self, domain: str, etag: str = ""
    ) -> DomainSignedPolicyData | None:
        """Fetch the signed policy bundle for ``domain``.

        With a non-empty ``etag`` the fetch is conditional; None means the
        service reports no change since that version.
        """
        ...

    @abstractmethod
    def post_domain_metrics(self, domain: str, metrics: DomainMetrics) -> None:
        """Report aggregated usage metrics for ``domain``."""
        ...


class KeyAuthorityClient(ABC):
    """Interface for the service publishing service public keys."""

    @abstractmethod
    def get_public_key_entry(self, domain: str, service: str, key_id: str) -> PublicKeyEntry:
        """Look up the public key ``key_id`` registered for ``domain.service``."""
        ...
