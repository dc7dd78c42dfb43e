"""
Wire and file models for signed domain policies, public keys and metrics.

Field names follow the JSON served by ZTS/ZMS (camelCase aliases).  Models
are frozen and keep unknown fields: the canonical string a signature covers
must be reproduced from exactly what the signer saw, so nothing received is
dropped or reformatted.  Timestamps stay as the text received and are
parsed on demand with :func:`parse_timestamp`.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 UTC timestamp such as ``2020-01-01T00:00:00.000Z``."""
    ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return ts


def format_timestamp(value: datetime) -> str:
    """Format a datetime the way ZTS does: millisecond precision, ``Z`` suffix."""
    value = value.astimezone(UTC)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def _check_timestamp(value: str | None) -> str | None:
    if value is not None:
        try:
            parse_timestamp(value)
        except ValueError as exc:
            raise ValueError(f"invalid timestamp {value!r}") from exc
    return value


class _WireModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)


# ---------------------------------------------------------------------------
# Policy data
# ---------------------------------------------------------------------------


class Assertion(_WireModel):
    role: str
    resource: str
    action: str
    effect: str | None = None  # ALLOW when absent
    id: int | None = None


class Policy(_WireModel):
    name: str
    modified: str | None = None
    assertions: list[Assertion] = Field(default_factory=list)

    @field_validator("modified")
    @classmethod
    def validate_modified(cls, v: str | None) -> str | None:
        return _check_timestamp(v)


class PolicyData(_WireModel):
    domain: str
    policies: list[Policy] = Field(default_factory=list)


class SignedPolicyData(_WireModel):
    policy_data: PolicyData = Field(alias="policyData")
    zms_signature: str | None = Field(default=None, alias="zmsSignature")
    zms_key_id: str | None = Field(default=None, alias="zmsKeyId")
    modified: str | None = None
    expires: str

    @field_validator("modified", "expires")
    @classmethod
    def validate_timestamps(cls, v: str | None) -> str | None:
        return _check_timestamp(v)

    @property
    def expires_at(self) -> datetime:
        return parse_timestamp(self.expires)

    def is_expired(self, now: datetime | None = None, grace: timedelta = timedelta(0)) -> bool:
        """True when ``now`` is strictly past ``expires + grace``.

        An expiry so far out that adding ``grace`` leaves the datetime range
        never passes.
        """
        now = now or datetime.now(UTC)
        try:
            deadline = self.expires_at + grace
        except OverflowError:
            return False
        return now > deadline


class DomainSignedPolicyData(_WireModel):
    """The signed policy bundle for one domain, as served and as cached."""

    signed_policy_data: SignedPolicyData = Field(alias="signedPolicyData")
    signature: str | None = None
    key_id: str | None = Field(default=None, alias="keyId")

    @property
    def domain(self) -> str:
        return self.signed_policy_data.policy_data.domain

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Public keys
# ---------------------------------------------------------------------------


class PublicKeyEntry(_WireModel):
    key: str  # YBase64-encoded PEM
    id: str


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------


class DomainMetric(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    metric_type: str = Field(alias="metricType")
    metric_val: StrictInt = Field(alias="metricVal")


class DomainMetrics(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    domain_name: str = Field(alias="domainName")
    metric_list: list[DomainMetric] = Field(alias="metricList")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)

    def totals(self) -> dict[str, int]:
        return {m.metric_type: m.metric_val for m in self.metric_list}
