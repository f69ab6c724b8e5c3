"""Shared test fixtures for qualicode."""

from datetime import datetime, timezone

import pytest

from qualicode.project import Project
from qualicode.spans import SpanStore
from qualicode.stores import MemoryBackend, SqlBackend

FIXED_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def fixed_clock():
    return FIXED_TIME


@pytest.fixture(params=["memory", "sql"])
def backend(request):
    """Each store backend, fresh and empty."""
    if request.param == "memory":
        store = MemoryBackend()
    else:
        store = SqlBackend("sqlite://")
    yield store
    store.close()


@pytest.fixture
def frozen_backend():
    """Memory backend whose records all share one timestamp."""
    return MemoryBackend(clock=fixed_clock)


@pytest.fixture
def span_store(backend):
    return SpanStore(backend, backend, backend)


@pytest.fixture
def project(backend):
    return Project(backend)
