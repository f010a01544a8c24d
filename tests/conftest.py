"""Shared pytest fixtures for the dispatch bot tests."""
import sys
sys.dont_write_bytecode = True

import pytest  # noqa: E402

from apkara.context_store import ContextStore  # noqa: E402

from .helpers import FakeClock, FakeGateway  # noqa: E402


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def contexts(clock):
    return ContextStore(ttl_seconds=24 * 60 * 60, clock=clock)
