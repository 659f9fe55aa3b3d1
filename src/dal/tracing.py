"""OpenTelemetry spans around example store operations."""

import logging
import os
from typing import Any, Awaitable, Dict, Optional

from common.config.env import get_env_bool

logger = logging.getLogger(__name__)


def is_otel_exporter_configured() -> bool:
    """Return True when OTEL exporter environment indicates external export is configured."""
    if get_env_bool("OTEL_DISABLE_EXPORTER", False):
        return False
    endpoint = (os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT") or "").strip()
    traces_endpoint = (os.getenv("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT") or "").strip()
    return bool(endpoint or traces_endpoint)


def trace_enabled() -> bool:
    """Return True when store tracing is enabled explicitly or by OTEL exporter defaults."""
    raw = os.getenv("EXAMPLES_TRACE_STORE")
    if raw is not None:
        try:
            return get_env_bool("EXAMPLES_TRACE_STORE", False) is True
        except ValueError:
            logger.warning("Invalid EXAMPLES_TRACE_STORE value '%s'; tracing disabled.", raw)
            return False
    return is_otel_exporter_configured()


async def trace_store_operation(
    name: str,
    provider: str,
    operation: Awaitable,
    attributes: Optional[Dict[str, Any]] = None,
):
    """Await ``operation`` inside an ``examples.<name>`` span when tracing is enabled."""
    if not trace_enabled():
        return await operation

    from opentelemetry import trace

    tracer = trace.get_tracer("examples.dal")
    with tracer.start_as_current_span(f"examples.{name}") as span:
        span.set_attribute("db.provider", provider)
        for key, value in (attributes or {}).items():
            if value is not None:
                span.set_attribute(key, value)
        try:
            result = await operation
            span.set_attribute("db.status", "ok")
            if isinstance(result, int) and not isinstance(result, bool):
                span.set_attribute("db.affected", result)
            elif isinstance(result, list):
                span.set_attribute("db.rows", len(result))
            return result
        except Exception:
            span.set_attribute("db.status", "error")
            raise
