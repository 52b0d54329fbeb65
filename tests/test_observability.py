"""Unit tests for the observability module."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from opentelemetry import trace

from core.observability import (
    EXCLUDED_URLS,
    _is_observability_enabled,
    configure_observability,
    get_tracer,
)


CONN = "InstrumentationKey=test;IngestionEndpoint=https://test.com"


@pytest.fixture(autouse=True)
def _fresh_configuration():
    configure_observability.cache_clear()
    yield
    configure_observability.cache_clear()


@pytest.mark.parametrize(
    "env_value,expected",
    [
        ("true", True),
        ("TRUE", True),
        ("1", True),
        ("yes", True),
        ("on", True),
        ("false", False),
        ("0", False),
        ("", False),
        ("random", False),
    ],
)
def test_enable_flag_values(
    env_value: str, expected: bool, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("ENABLE_OBSERVABILITY", env_value)
    assert _is_observability_enabled() is expected


class TestConfigureObservability:
    def test_returns_false_when_disabled(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ENABLE_OBSERVABILITY", "false")
        assert configure_observability() is False

    def test_returns_false_when_no_connection_string(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("ENABLE_OBSERVABILITY", "true")
        monkeypatch.delenv("APPLICATIONINSIGHTS_CONNECTION_STRING", raising=False)
        assert configure_observability() is False

    def test_returns_true_on_successful_configuration(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("ENABLE_OBSERVABILITY", "true")
        monkeypatch.setenv("APPLICATIONINSIGHTS_CONNECTION_STRING", CONN)
        monkeypatch.setenv("OTEL_SERVICE_NAME", "jobfinder-test")
        monkeypatch.setenv("OTEL_PYTHON_FASTAPI_EXCLUDED_URLS", EXCLUDED_URLS)
        mock_module = MagicMock()

        with patch.dict("sys.modules", {"azure.monitor.opentelemetry": mock_module}):
            assert configure_observability() is True
        mock_module.configure_azure_monitor.assert_called_once_with(
            connection_string=CONN
        )

    def test_returns_false_on_configuration_exception(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("ENABLE_OBSERVABILITY", "true")
        monkeypatch.setenv("APPLICATIONINSIGHTS_CONNECTION_STRING", CONN)
        mock_module = MagicMock()
        mock_module.configure_azure_monitor.side_effect = RuntimeError("Config failed")

        with patch.dict("sys.modules", {"azure.monitor.opentelemetry": mock_module}):
            assert configure_observability() is False


def test_get_tracer_spans_work_without_exporter() -> None:
    tracer = get_tracer("tests.summary")
    assert isinstance(tracer, trace.Tracer)
    with tracer.start_as_current_span("summary.generate") as span:
        span.set_attribute("summary.kind", "summary")
