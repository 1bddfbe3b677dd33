"""Shared fixtures: an in-memory reporting client and a no-op sleep."""

import sys
from pathlib import Path

import pytest

# Ensure the project root is in sys.path when running without an install
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from opentelemetry.sdk.metrics.export import InMemoryMetricReader
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from synthload.otel_setup import ClientOptions, init_client


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def metric_reader() -> InMemoryMetricReader:
    return InMemoryMetricReader()


@pytest.fixture
def client(span_exporter, metric_reader):
    c = init_client(
        "localhost:4317",
        ClientOptions(service_name="synthload-test"),
        span_exporter=span_exporter,
        metric_reader=metric_reader,
    )
    yield c
    c.shutdown()


@pytest.fixture
def sleeps(monkeypatch: pytest.MonkeyPatch) -> list:
    # runners and spans share the time module, so one recorder sees both.
    import synthload.runners as runners_module

    calls: list = []
    monkeypatch.setattr(runners_module.time, "sleep", lambda d: calls.append(d))
    return calls
