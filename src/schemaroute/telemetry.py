"""Tracing helpers for schemaroute.

Thin wrapper over the OpenTelemetry tracing API. Spans are only recorded once
tracing is enabled with `configure_tracing(True)` and an OpenTelemetry tracer
provider is installed by the hosting application; otherwise every operation
receives a no-op span.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from schemaroute.core.version import PACKAGE_NAME, PACKAGE_VERSION

logger = logging.getLogger(__name__)

__all__ = ["configure_tracing", "is_tracing_enabled", "traced_operation", "NoOpSpan"]

_tracing_enabled = False


class NoOpSpan:
    """No-op span for when tracing is disabled."""

    def set_attribute(self, key: str, value: Any) -> None:
        pass

    def record_exception(self, exception: BaseException) -> None:
        pass

    def is_recording(self) -> bool:
        return False


class SpanWrapper:
    """Wraps an OpenTelemetry span, filtering attribute values to supported types."""

    def __init__(self, otel_span: Any) -> None:
        self._span = otel_span

    def set_attribute(self, key: str, value: Any) -> None:
        if not self._span.is_recording() or value is None:
            return
        if isinstance(value, str | int | float | bool):
            self._span.set_attribute(key, value)
        else:
            self._span.set_attribute(key, str(value))

    def record_exception(self, exception: BaseException) -> None:
        if self._span.is_recording():
            self._span.record_exception(exception)

    def is_recording(self) -> bool:
        return bool(self._span.is_recording())


def configure_tracing(enabled: bool) -> None:
    """Enable or disable span recording for schemaroute operations."""
    global _tracing_enabled
    _tracing_enabled = enabled
    logger.debug(f"Tracing {'enabled' if enabled else 'disabled'}")


def is_tracing_enabled() -> bool:
    return _tracing_enabled


@contextmanager
def traced_operation(
    name: str, attributes: dict[str, Any] | None = None
) -> Iterator[SpanWrapper | NoOpSpan]:
    """Context manager for tracing an operation.

    Args:
        name: Operation name (e.g., "schemaroute.validate")
        attributes: Initial span attributes

    Yields:
        A span; a no-op span when tracing is disabled

    Example:
        ```python
        with traced_operation("schemaroute.openapi.generate", {"routes": 3}) as span:
            span.set_attribute("paths", 2)
        ```
    """
    if not _tracing_enabled:
        yield NoOpSpan()
        return

    tracer = trace.get_tracer(PACKAGE_NAME, PACKAGE_VERSION)
    with tracer.start_as_current_span(name) as otel_span:
        span = SpanWrapper(otel_span)
        for key, value in (attributes or {}).items():
            span.set_attribute(key, value)
        try:
            yield span
        except Exception as e:
            span.record_exception(e)
            otel_span.set_status(Status(StatusCode.ERROR, str(e)))
            raise
