"""Shared fixtures: signing keys, fake services, and a config rooted in tmp_path."""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.helpers import FakeZMS, FakeZTS, SigningKey
from zpu.core.config import ZpuConfig
from zpu.policy.keys import KeyResolver


@pytest.fixture(scope="session")
def zts_key() -> SigningKey:
    return SigningKey.generate("zts.0")


@pytest.fixture(scope="session")
def zms_key() -> SigningKey:
    return SigningKey.generate("zms.0")


@pytest.fixture
def fake_zts() -> FakeZTS:
    return FakeZTS()


@pytest.fixture
def fake_zms(zts_key: SigningKey, zms_key: SigningKey) -> FakeZMS:
    zms = FakeZMS()
    zms.add("zts", zts_key)
    zms.add("zms", zms_key)
    return zms


@pytest.fixture
def config(tmp_path: Path) -> ZpuConfig:
    policy_dir = tmp_path / "policies"
    policy_dir.mkdir()
    return ZpuConfig(
        domains="sports,weather",
        zts_url="https://zts.example.com:4443",
        zms_url="https://zms.example.com:4443",
        policy_file_dir=str(policy_dir),
        tmp_policy_file_dir=str(tmp_path / "tmp"),
    )


@pytest.fixture
def resolver(config: ZpuConfig, fake_zms: FakeZMS) -> KeyResolver:
    return KeyResolver(config, fake_zms)
