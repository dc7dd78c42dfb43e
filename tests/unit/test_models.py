"""Unit tests for wire model helpers."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from zpu.core.models import SignedPolicyData, format_timestamp, parse_timestamp


def _signed(expires: str) -> SignedPolicyData:
    return SignedPolicyData(policy_data={"domain": "sports"}, expires=expires)


class TestTimestamps:
    def test_parse_z_suffix(self) -> None:
        assert parse_timestamp("2020-01-01T00:00:00.000Z") == datetime(2020, 1, 1, tzinfo=UTC)

    def test_format_millis(self) -> None:
        ts = datetime(2020, 1, 1, 12, 30, 5, 123456, tzinfo=UTC)
        assert format_timestamp(ts) == "2020-01-01T12:30:05.123Z"

    def test_invalid_timestamp_rejected(self) -> None:
        with pytest.raises(ValueError):
            _signed("next tuesday")


class TestIsExpired:
    def test_strictly_after_expiry(self) -> None:
        signed = _signed("2030-06-01T00:00:00Z")
        assert not signed.is_expired(datetime(2030, 6, 1, tzinfo=UTC))
        assert signed.is_expired(datetime(2030, 6, 1, 0, 0, 1, tzinfo=UTC))

    def test_grace_extends_deadline(self) -> None:
        signed = _signed("2030-06-01T00:00:00Z")
        grace = timedelta(seconds=60)
        assert not signed.is_expired(datetime(2030, 6, 1, 0, 0, 30, tzinfo=UTC), grace=grace)
        assert signed.is_expired(datetime(2030, 6, 1, 0, 1, 1, tzinfo=UTC), grace=grace)

    def test_grace_past_datetime_range_never_expires(self) -> None:
        signed = _signed("9999-12-31T23:59:59Z")
        assert not signed.is_expired(grace=timedelta(seconds=60))
