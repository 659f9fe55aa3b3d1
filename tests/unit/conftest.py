"""Unit test environment helpers."""

import pytest

from dal.memory import InMemoryExampleStore
from tests._support.example_factory import SequentialIds


@pytest.fixture(autouse=True)
def _minimal_env(monkeypatch):
    """Keep provider selection and tracing independent of the developer's shell."""
    for name in (
        "EXAMPLE_STORE_PROVIDER",
        "EXAMPLES_DEFAULT_PAGE_SIZE",
        "EXAMPLES_TRACE_STORE",
        "OTEL_EXPORTER_OTLP_ENDPOINT",
        "OTEL_EXPORTER_OTLP_TRACES_ENDPOINT",
    ):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(autouse=True)
def _reset_store_singleton():
    """Reset the DAL factory singleton after each test."""
    from dal.factory import reset_singletons

    yield
    reset_singletons()


@pytest.fixture
def store():
    """Empty in-memory example store."""
    return InMemoryExampleStore()


@pytest.fixture
def ids():
    """Deterministic id provider yielding ex-1, ex-2, ..."""
    return SequentialIds()
