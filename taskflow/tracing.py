"""
OpenTelemetry tracing.

Until ``setup_tracing()`` runs (the HTTP app does it in its lifespan) the
global tracer is a no-op, so ``trace_span`` can be used anywhere, including
the stdio transport and tests.

Environment:
    OTEL_SERVICE_NAME                 service.name resource attribute (taskflow-mcp)
    OTEL_EXPORTER_OTLP_ENABLED        "true" to export spans over OTLP/gRPC
    OTEL_EXPORTER_OTLP_ENDPOINT       collector address (http://localhost:4317)
    OTEL_CONSOLE_EXPORTER_ENABLED     "true" to print spans to stdout
"""
import os
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

from taskflow import __version__

logger = logging.getLogger(__name__)

_provider: Optional[TracerProvider] = None


def _enabled(name: str) -> bool:
    return os.getenv(name, "false").lower() == "true"


def _span_processors() -> List[SpanProcessor]:
    processors: List[SpanProcessor] = []
    if _enabled("OTEL_EXPORTER_OTLP_ENABLED"):
        endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317")
        try:
            processors.append(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=True)))
            logger.info(f"Exporting spans to {endpoint}")
        except Exception:
            logger.warning("Could not create the OTLP exporter, spans will not be exported", exc_info=True)
    if _enabled("OTEL_CONSOLE_EXPORTER_ENABLED"):
        processors.append(BatchSpanProcessor(ConsoleSpanExporter()))
    return processors


def setup_tracing() -> None:
    """Install the global tracer provider. Calling it twice is a no-op."""
    global _provider

    if _provider is not None:
        logger.debug("Tracing already set up")
        return

    _provider = TracerProvider(resource=Resource.create({
        "service.name": os.getenv("OTEL_SERVICE_NAME", "taskflow-mcp"),
        "service.version": __version__,
    }))
    for processor in _span_processors():
        _provider.add_span_processor(processor)
    trace.set_tracer_provider(_provider)
    logger.info("Tracing initialized")


def instrument_fastapi(app) -> None:
    """Create server spans for every FastAPI request."""
    try:
        FastAPIInstrumentor.instrument_app(app)
    except Exception:
        logger.error("FastAPI instrumentation failed", exc_info=True)


def instrument_httpx() -> None:
    """Create client spans for outgoing Notion and image requests."""
    try:
        HTTPXClientInstrumentor().instrument()
    except Exception:
        logger.error("HTTPX instrumentation failed", exc_info=True)


def _attribute_value(value: Any) -> Any:
    return value if isinstance(value, (str, int, float, bool)) else str(value)


@contextmanager
def trace_span(
    name: str,
    attributes: Optional[Dict[str, Any]] = None,
    kind: trace.SpanKind = trace.SpanKind.INTERNAL,
) -> Iterator[trace.Span]:
    """
    Run the block inside a span.

    Attributes whose value is None are left out. An exception escaping the
    block is recorded on the span, which is marked as failed, and re-raised.

    Example:
        with trace_span("notion.get_task", {"notion.task_id": task_id}):
            ...
    """
    tracer = trace.get_tracer("taskflow")
    with tracer.start_as_current_span(name, kind=kind, record_exception=False) as span:
        for key, value in (attributes or {}).items():
            if value is not None:
                span.set_attribute(key, _attribute_value(value))
        try:
            yield span
        except Exception as e:
            span.record_exception(e)
            span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
            raise


def add_span_attribute(key: str, value: Any) -> None:
    """Set an attribute on the span that is currently active (if any)."""
    trace.get_current_span().set_attribute(key, _attribute_value(value))
