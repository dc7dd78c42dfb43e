"""Unit tests for public key resolution."""

from __future__ import annotations

import pytest

from tests.helpers import FakeZMS, SigningKey
from zpu.core.exceptions import KeyResolutionError
from zpu.core.models import PublicKeyEntry
from zpu.policy.keys import KeyResolver


class TestKeyResolver:
    def test_fetches_from_zms_and_decodes(self, zts_key, fake_zms, resolver) -> None:
        assert resolver.zts_key("zts.0") == zts_key.public_pem
        assert fake_zms.lookups == [("sys.auth", "zts", "zts.0")]

    def test_remote_result_memoized(self, zms_key, fake_zms, resolver) -> None:
        resolver.zms_key("zms.0")
        resolver.zms_key("zms.0")
        assert fake_zms.lookups == [("sys.auth", "zms", "zms.0")]

    def test_static_key_wins(self, config, fake_zms) -> None:
        pinned = SigningKey.generate("zts.0")
        cfg = config.model_copy(update={"zts_public_keys": {"zts.0": pinned.public_pem.strip()}})
        resolver = KeyResolver(cfg, fake_zms)
        assert resolver.zts_key("zts.0") == pinned.public_pem.strip()
        assert fake_zms.lookups == []

    def test_services_do_not_share_ids(self, config, zts_key, zms_key) -> None:
        zms = FakeZMS()
        zms.keys[("zts", "0")] = zts_key.public_entry
        zms.keys[("zms", "0")] = zms_key.public_entry
        resolver = KeyResolver(config, zms)
        assert resolver.zts_key("0") == zts_key.public_pem
        assert resolver.zms_key("0") == zms_key.public_pem

    def test_missing_key(self, resolver) -> None:
        with pytest.raises(KeyResolutionError, match='zms public key with id:"nope"'):
            resolver.zms_key("nope")

    def test_undecodable_key(self, config) -> None:
        zms = FakeZMS()
        zms.keys[("zts", "bad")] = PublicKeyEntry(key="!!not-ybase64!!", id="bad")
        with pytest.raises(KeyResolutionError, match="Unable to decode"):
            KeyResolver(config, zms).zts_key("bad")

    def test_failed_lookup_not_cached(self, config, zts_key) -> None:
        zms = FakeZMS()
        resolver = KeyResolver(config, zms)
        with pytest.raises(KeyResolutionError):
            resolver.zts_key("zts.0")
        zms.add("zts", zts_key)
        assert resolver.zts_key("zts.0") == zts_key.public_pem
