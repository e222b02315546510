import pytest
from fastapi.testclient import TestClient
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from app.core.config import Settings
from app.core.telemetry import configure_propagation

_exporter = InMemorySpanExporter()


@pytest.fixture(scope="session", autouse=True)
def tracer_provider():
    """Global tracer provider that keeps finished spans in memory."""
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(_exporter))
    trace.set_tracer_provider(provider)
    configure_propagation()
    yield provider
    provider.shutdown()


@pytest.fixture
def span_exporter():
    _exporter.clear()
    yield _exporter
    _exporter.clear()


@pytest.fixture
def make_settings(tmp_path):
    """Build a Settings instance with per-test overrides."""

    def _make(**overrides) -> Settings:
        config = Settings()
        config.TRACING_ENABLED = False
        config.ISSUE_URL = None
        for key, value in overrides.items():
            setattr(config, key, value)
        return config

    return _make


@pytest.fixture
def test_settings(make_settings):
    return make_settings()


@pytest.fixture
def client(test_settings):
    from app.app import create_app

    with TestClient(create_app(test_settings)) as test_client:
        yield test_client
