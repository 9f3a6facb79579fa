"""Unit tests for logging and tracing configuration."""

from __future__ import annotations

from opentelemetry.sdk.trace import TracerProvider

from stack_deployer.config import ObservabilitySettings
from stack_deployer.infrastructure.observability.logging import setup_logging
from stack_deployer.infrastructure.observability.tracing import get_tracer, setup_tracing


class TestLogging:
    def test_setup_logging_info(self) -> None:
        setup_logging("INFO")  # Should not raise

    def test_setup_logging_debug(self) -> None:
        setup_logging("DEBUG")  # Should not raise

    def test_setup_logging_console(self) -> None:
        setup_logging("WARNING", json_output=False)  # Should not raise


class TestTracing:
    def test_disabled_by_default(self) -> None:
        assert setup_tracing(ObservabilitySettings()) is None

    def test_enabled(self) -> None:
        provider = setup_tracing(ObservabilitySettings(tracing_enabled=True))
        assert isinstance(provider, TracerProvider)
        assert provider.resource.attributes["service.name"] == "stack-deployer"
        provider.shutdown()

    def test_get_tracer(self) -> None:
        with get_tracer().start_as_current_span("test"):
            pass
