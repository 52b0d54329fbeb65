"""Observability configuration (OpenTelemetry, optionally exported to Azure Monitor).

Call configure_observability() at the very start of application
initialization so HTTP requests and database calls are instrumented.

PII and Sensitive Data Guidance:
--------------------------------
- NEVER put job descriptions, resume text, skills or generated summaries in
  span attributes
- Use correlation IDs to link traces without embedding sensitive content
- Prefer structured logging with the project's StructuredLogger
  (core/error_handler.py) which redacts sensitive keys

For production (Azure):
- Set ENABLE_OBSERVABILITY=true and APPLICATIONINSIGHTS_CONNECTION_STRING
- Install the `observability` extra (azure-monitor-opentelemetry)
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from opentelemetry import trace


logger = logging.getLogger(__name__)

_ENV_ENABLE_OBSERVABILITY = "ENABLE_OBSERVABILITY"
_ENV_APP_INSIGHTS_CONN_STRING = "APPLICATIONINSIGHTS_CONNECTION_STRING"
_ENV_OTEL_SERVICE_NAME = "OTEL_SERVICE_NAME"

_DEFAULT_SERVICE_NAME = "jobfinder-backend"

# Paths to exclude from automatic tracing (reduce noise for health checks)
EXCLUDED_URLS = "health,health/,favicon.ico"


def _is_observability_enabled() -> bool:
    value = os.getenv(_ENV_ENABLE_OBSERVABILITY, "false").lower()
    return value in {"true", "1", "yes", "on"}


@lru_cache
def configure_observability() -> bool:
    """Configure export of OpenTelemetry traces to Azure Monitor.

    Returns:
        True if an exporter was configured, False otherwise. Without an
        exporter the OpenTelemetry API stays a no-op and spans cost nothing.
    """
    if not _is_observability_enabled():
        logger.info(
            "Observability disabled. Set %s=true to enable Azure Monitor.",
            _ENV_ENABLE_OBSERVABILITY,
        )
        return False

    connection_string = os.getenv(_ENV_APP_INSIGHTS_CONN_STRING)
    if not connection_string:
        logger.warning(
            "Observability enabled but %s not set. Skipping Azure Monitor setup.",
            _ENV_APP_INSIGHTS_CONN_STRING,
        )
        return False

    try:
        from azure.monitor.opentelemetry import configure_azure_monitor
    except ImportError:
        logger.warning(
            "azure-monitor-opentelemetry package not installed. "
            "Install the 'observability' extra to export traces."
        )
        return False

    service_name = os.getenv(_ENV_OTEL_SERVICE_NAME, _DEFAULT_SERVICE_NAME)
    os.environ.setdefault(_ENV_OTEL_SERVICE_NAME, service_name)
    os.environ.setdefault("OTEL_PYTHON_FASTAPI_EXCLUDED_URLS", EXCLUDED_URLS)
    try:
        configure_azure_monitor(connection_string=connection_string)
    except Exception as e:
        logger.exception("Failed to configure Azure Monitor observability: %s", e)
        return False

    logger.info("Azure Monitor observability configured for service '%s'", service_name)
    return True


def get_tracer(name: str) -> trace.Tracer:
    """Get an OpenTelemetry tracer for custom spans.

    Example:
        tracer = get_tracer(__name__)

        with tracer.start_as_current_span("summary.generate") as span:
            span.set_attribute("summary.kind", "compare")  # no PII!
    """
    return trace.get_tracer(name)
