"""Root pytest configuration and shared fixtures."""

from __future__ import annotations

import os

import pytest

from redis_failover.config import runtime
from tests.helpers.fakes import FakeConnectionFactory, IdentityRng


@pytest.fixture
def identity_rng() -> IdentityRng:
    return IdentityRng()


@pytest.fixture
def factory() -> FakeConnectionFactory:
    return FakeConnectionFactory()


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep developer .env files and REDIS_FAILOVER_* variables out of tests."""
    monkeypatch.setattr(runtime, "_DEFAULT_VALUES", {})
    for name in list(os.environ):
        if name.startswith("REDIS_FAILOVER_"):
            monkeypatch.delenv(name, raising=False)
