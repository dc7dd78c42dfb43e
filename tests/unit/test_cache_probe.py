"""Unit tests for the policy cache probe and etag derivation."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from tests.helpers import SigningKey, make_bundle
from zpu.core.canonical import to_canonical_string
from zpu.policy.cache import CacheState, get_etag, policy_file_path, probe_cache


def _cache(config, bundle, domain: str = "sports") -> None:
    policy_file_path(config.policy_dir, domain).write_text(bundle.to_json(), encoding="utf-8")


class TestProbeCache:
    def test_absent(self, config, resolver) -> None:
        result = probe_cache("sports", config, resolver)
        assert result.state is CacheState.ABSENT
        assert result.etag == ""

    def test_valid_yields_quoted_modified(self, config, resolver, zts_key, zms_key) -> None:
        _cache(config, make_bundle("sports", zts_key, zms_key))
        result = probe_cache("sports", config, resolver)
        assert result.state is CacheState.VALID
        assert result.etag == '"2020-01-01T00:00:00Z"'
        assert get_etag("sports", config, resolver) == '"2020-01-01T00:00:00Z"'

    def test_corrupt_file_is_unreadable(self, config, resolver) -> None:
        policy_file_path(config.policy_dir, "sports").write_text("{not json", encoding="utf-8")
        result = probe_cache("sports", config, resolver)
        assert result.state is CacheState.UNREADABLE
        assert result.etag == ""

    def test_wrong_shape_is_unreadable(self, config, resolver) -> None:
        policy_file_path(config.policy_dir, "sports").write_text('{"keyId": "0"}', encoding="utf-8")
        assert probe_cache("sports", config, resolver).state is CacheState.UNREADABLE

    def test_bad_signature_is_untrusted(self, config, resolver, zms_key) -> None:
        _cache(config, make_bundle("sports", SigningKey.generate("zts.0"), zms_key))
        result = probe_cache("sports", config, resolver)
        assert result.state is CacheState.UNTRUSTED
        assert result.etag == ""

    def test_expired(self, config, resolver, zts_key, zms_key) -> None:
        past = datetime.now(UTC) - timedelta(hours=1)
        _cache(config, make_bundle("sports", zts_key, zms_key, expires=past))
        result = probe_cache("sports", config, resolver)
        assert result.state is CacheState.EXPIRED
        assert result.etag == ""

    def test_expiry_checked_at_given_time(self, config, resolver, zts_key, zms_key) -> None:
        _cache(config, make_bundle("sports", zts_key, zms_key, expires="2030-06-01T00:00:00Z"))
        later = datetime(2030, 6, 2, tzinfo=UTC)
        assert probe_cache("sports", config, resolver, now=later).state is CacheState.EXPIRED

    def test_empty_modified_gives_no_etag(self, config, resolver, zts_key, zms_key) -> None:
        bundle = make_bundle("sports", zts_key, zms_key)
        signed = bundle.signed_policy_data.model_copy(update={"modified": None})
        resigned = bundle.model_copy(
            update={
                "signed_policy_data": signed,
                "signature": zts_key.sign(to_canonical_string(signed)),
            }
        )
        _cache(config, resigned)
        result = probe_cache("sports", config, resolver)
        assert result.state is CacheState.VALID
        assert result.etag == ""

    def test_probe_does_not_modify_cache(self, config, resolver) -> None:
        path = policy_file_path(config.policy_dir, "sports")
        path.write_text("garbage", encoding="utf-8")
        probe_cache("sports", config, resolver)
        assert path.read_text(encoding="utf-8") == "garbage"

    def test_unopenable_path_is_unreadable(self, config, resolver) -> None:
        result = probe_cache("x" * 300, config, resolver)
        assert result.state is CacheState.UNREADABLE
        assert result.etag == ""


class TestStartupDelay:
    def test_valid_bundle_with_delay_keeps_etag(self, config, resolver, zts_key, zms_key) -> None:
        cfg = config.model_copy(update={"startup_delay_seconds": 60})
        _cache(cfg, make_bundle("sports", zts_key, zms_key, expires="2030-06-01T00:00:00Z"))
        result = probe_cache("sports", cfg, resolver, now=datetime(2030, 5, 31, tzinfo=UTC))
        assert result.state is CacheState.VALID
        assert result.etag == '"2020-01-01T00:00:00Z"'

    def test_past_expiry_inside_delay_window_still_expired(
        self, config, resolver, zts_key, zms_key
    ) -> None:
        # The cached file must pass the strict expiry check before the delay applies
        cfg = config.model_copy(update={"startup_delay_seconds": 60})
        _cache(cfg, make_bundle("sports", zts_key, zms_key, expires="2030-06-01T00:00:00Z"))
        now = datetime(2030, 6, 1, 0, 0, 30, tzinfo=UTC)
        result = probe_cache("sports", cfg, resolver, now=now)
        assert result.state is CacheState.EXPIRED
        assert result.etag == ""

    def test_past_delay_window_expired(self, config, resolver, zts_key, zms_key) -> None:
        cfg = config.model_copy(update={"startup_delay_seconds": 60})
        _cache(cfg, make_bundle("sports", zts_key, zms_key, expires="2030-06-01T00:00:00Z"))
        now = datetime(2030, 6, 1, 0, 5, tzinfo=UTC)
        assert probe_cache("sports", cfg, resolver, now=now).state is CacheState.EXPIRED

    def test_expiry_at_end_of_calendar(self, config, resolver, zts_key, zms_key) -> None:
        cfg = config.model_copy(update={"startup_delay_seconds": 60})
        _cache(cfg, make_bundle("sports", zts_key, zms_key, expires="9999-12-31T23:59:59Z"))
        result = probe_cache("sports", cfg, resolver)
        assert result.state is CacheState.VALID
        assert result.etag == '"2020-01-01T00:00:00Z"'
