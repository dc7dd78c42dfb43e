"""Shared builders and in-memory fakes for ZPU tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec

from zpu.clients.base import KeyAuthorityClient, PolicyDistributionClient
from zpu.core.canonical import to_canonical_string
from zpu.core.exceptions import RemoteError
from zpu.core.models import (
    DomainMetrics,
    DomainSignedPolicyData,
    PolicyData,
    PublicKeyEntry,
    SignedPolicyData,
    format_timestamp,
)
from zpu.crypto.ybase64 import ybase64_encode


@dataclass
class SigningKey:
    """An EC P-256 key pair standing in for a ZTS or ZMS signing key."""

    private_key: ec.EllipticCurvePrivateKey
    key_id: str = "0"

    @classmethod
    def generate(cls, key_id: str = "0") -> SigningKey:
        return cls(ec.generate_private_key(ec.SECP256R1()), key_id)

    @property
    def public_pem(self) -> str:
        return (
            self.private_key.public_key()
            .public_bytes(
                serialization.Encoding.PEM,
                serialization.PublicFormat.SubjectPublicKeyInfo,
            )
            .decode("ascii")
        )

    @property
    def public_entry(self) -> PublicKeyEntry:
        return PublicKeyEntry(key=ybase64_encode(self.public_pem.encode("ascii")), id=self.key_id)

    def sign(self, text: str) -> str:
        return ybase64_encode(self.private_key.sign(text.encode("utf-8"), ec.ECDSA(hashes.SHA256())))


def policy_data_dict(domain: str, role: str = "readers") -> dict[str, Any]:
    return {
        "domain": domain,
        "policies": [
            {
                "name": f"{domain}:policy.{role}",
                "modified": "2020-01-01T00:00:00.000Z",
                "assertions": [
                    {
                        "role": f"{domain}:role.{role}",
                        "resource": f"{domain}:articles.*",
                        "action": "read",
                        "effect": "ALLOW",
                        "id": 7,
                    }
                ],
            }
        ],
    }


def make_bundle(
    domain: str,
    zts_key: SigningKey,
    zms_key: SigningKey,
    *,
    modified: str = "2020-01-01T00:00:00Z",
    expires: datetime | str | None = None,
    policy_data: dict[str, Any] | None = None,
    tamper_policy_data: dict[str, Any] | None = None,
) -> DomainSignedPolicyData:
    """
    Build a bundle signed by both keys.

    ``tamper_policy_data`` replaces the policy data after ZMS signed it and
    before ZTS signs the wrapper, producing a bundle whose outer signature
    is good and whose inner signature is not.
    """
    if expires is None:
        expires = datetime.now(UTC) + timedelta(days=7)
    if isinstance(expires, datetime):
        expires = format_timestamp(expires)

    original = PolicyData.model_validate(policy_data or policy_data_dict(domain))
    zms_signature = zms_key.sign(to_canonical_string(original))
    served = (
        PolicyData.model_validate(tamper_policy_data) if tamper_policy_data is not None else original
    )
    signed = SignedPolicyData(
        policy_data=served,
        zms_signature=zms_signature,
        zms_key_id=zms_key.key_id,
        modified=modified,
        expires=expires,
    )
    return DomainSignedPolicyData(
        signed_policy_data=signed,
        signature=zts_key.sign(to_canonical_string(signed)),
        key_id=zts_key.key_id,
    )


@dataclass
class FakeZTS(PolicyDistributionClient):
    """In-memory ZTS: per-domain bundle, None (not modified), or an exception."""

    responses: dict[str, DomainSignedPolicyData | None | Exception] = field(default_factory=dict)
    fetches: list[tuple[str, str]] = field(default_factory=list)
    posted: list[tuple[str, DomainMetrics]] = field(default_factory=list)
    fail_post_for: set[str] = field(default_factory=set)

    def get_domain_signed_policy_data(
        self, domain: str, etag: str = ""
    ) -> DomainSignedPolicyData | None:
        self.fetches.append((domain, etag))
        response = self.responses.get(domain)
        if isinstance(response, Exception):
            raise response
        if response is not None and etag and etag == f'"{response.signed_policy_data.modified}"':
            return None
        return response

    def post_domain_metrics(self, domain: str, metrics: DomainMetrics) -> None:
        if domain in self.fail_post_for:
            raise RemoteError("ZTS returned 500", status_code=500)
        self.posted.append((domain, metrics))


@dataclass
class FakeZMS(KeyAuthorityClient):
    """In-memory ZMS serving public keys under ``sys.auth``."""

    keys: dict[tuple[str, str], PublicKeyEntry] = field(default_factory=dict)
    lookups: list[tuple[str, str, str]] = field(default_factory=list)

    def add(self, service: str, key: SigningKey) -> None:
        self.keys[(service, key.key_id)] = key.public_entry

    def get_public_key_entry(self, domain: str, service: str, key_id: str) -> PublicKeyEntry:
        self.lookups.append((domain, service, key_id))
        try:
            return self.keys[(service, key_id)]
        except KeyError:
            raise RemoteError(f"public key {service}/{key_id} not found", status_code=404) from None
