"""
httpx-backed ZTS and ZMS clients.

Usage::

    with ZTSClient.from_config(config) as zts, ZMSClient.from_config(config) as zms:
        data = zts.get_domain_signed_policy_data("sports", etag)
"""

from __future__ import annotations

import logging
import ssl
from typing import Any, Self
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from zpu.clients.base import KeyAuthorityClient, PolicyDistributionClient
from zpu.core.config import ZpuConfig
from zpu.core.constants import ZMS_URL_SUFFIX, ZTS_URL_SUFFIX
from zpu.core.exceptions import ConfigError, RemoteError
from zpu.core.models import DomainMetrics, DomainSignedPolicyData, PublicKeyEntry

logger = logging.getLogger(__name__)


def format_url(url: str, suffix: str) -> str:
    """Append ``suffix`` to ``url`` with exactly one separating slash.

    A URL that already ends with ``suffix`` is returned unchanged.
    """
    if url.endswith(suffix):
        return url
    if not url.endswith("/"):
        url += "/"
    return url + suffix


def _segment(value: str) -> str:
    return quote(value, safe="")


class _HttpClient:
    """Shared httpx plumbing: TLS settings, error mapping, lifecycle."""

    service_name = ""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        verify: bool | ssl.SSLContext = True,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            timeout=timeout,
            verify=verify,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    @staticmethod
    def _tls_kwargs(config: ZpuConfig) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"timeout": config.http.timeout_seconds}
        if config.tls.ca_cert or config.tls.cert_file:
            try:
                ctx = ssl.create_default_context(cafile=config.tls.ca_cert or None)
                if config.tls.cert_file:
                    ctx.load_cert_chain(config.tls.cert_file, config.tls.key_file)
            except OSError as exc:
                raise ConfigError(f"Cannot load TLS material: {exc}") from exc
            kwargs["verify"] = ctx
        return kwargs

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            return self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise RemoteError(f"{self.service_name} request timed out: {method} {url}") from exc
        except httpx.HTTPError as exc:
            raise RemoteError(f"Could not connect to {self.service_name} at {url}: {exc}") from exc

    def _raise_for_status(self, resp: httpx.Response) -> None:
        if resp.is_success:
            return
        detail = resp.text.strip()[:200]
        raise RemoteError(
            f"{self.service_name} returned {resp.status_code} for "
            f"{resp.request.method} {resp.request.url}: {detail}",
            status_code=resp.status_code,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class ZTSClient(_HttpClient, PolicyDistributionClient):
    """Client for the ZTS signed-policy and metrics endpoints."""

    service_name = "ZTS"

    @classmethod
    def from_config(cls, config: ZpuConfig, **kwargs: Any) -> ZTSClient:
        return cls(
            format_url(config.zts_url, ZTS_URL_SUFFIX), **{**cls._tls_kwargs(config), **kwargs}
        )

    def get_domain_signed_policy_data(
        self, domain: str, etag: str = ""
    ) -> DomainSignedPolicyData | None:
        headers = {"If-None-Match": etag} if etag else {}
        resp = self._request(
            "GET", f"/domain/{_segment(domain)}/signed_policy_data", headers=headers
        )
        if resp.status_code == httpx.codes.NOT_MODIFIED:
            return None
        self._raise_for_status(resp)
        try:
            return DomainSignedPolicyData.model_validate_json(resp.content)
        except ValidationError as exc:
            raise RemoteError(
                f"ZTS returned malformed signed policy data for domain {domain}: {exc}",
                status_code=resp.status_code,
            ) from exc

    def post_domain_metrics(self, domain: str, metrics: DomainMetrics) -> None:
        resp = self._request("POST", f"/domain/{_segment(domain)}/metrics", json=metrics.to_wire())
        self._raise_for_status(resp)


class ZMSClient(_HttpClient, KeyAuthorityClient):
    """Client for the ZMS public key lookup endpoint."""

    service_name = "ZMS"

    @classmethod
    def from_config(cls, config: ZpuConfig, **kwargs: Any) -> ZMSClient:
        return cls(
            format_url(config.zms_url, ZMS_URL_SUFFIX), **{**cls._tls_kwargs(config), **kwargs}
        )

    def get_public_key_entry(self, domain: str, service: str, key_id: str) -> PublicKeyEntry:
        resp = self._request(
            "GET",
            f"/domain/{_segment(domain)}/service/{_segment(service)}"
            f"/publickey/{_segment(key_id)}",
        )
        self._raise_for_status(resp)
        try:
            return PublicKeyEntry.model_validate_json(resp.content)
        except ValidationError as exc:
            raise RemoteError(f"ZMS returned a malformed public key entry: {exc}") from exc
