"""
Flashdeck - Telemetry Module
OpenTelemetry tracing for calls to the text-generation provider
"""
import logging
from contextlib import contextmanager
from typing import Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Status, StatusCode

from flashdeck.core.config import settings

logger = logging.getLogger(__name__)

TRACER_NAME = "flashdeck.ai"

_initialized = False


def init_telemetry() -> trace.Tracer:
    """
    Install a tracer provider exporting over OTLP.
    Call this once at application startup. Without it, spans are no-ops.
    """
    global _initialized

    if _initialized:
        return get_tracer()

    resource = Resource.create({
        "service.name": settings.OTEL_SERVICE_NAME,
        "service.version": settings.APP_VERSION,
        "deployment.environment": settings.ENVIRONMENT,
    })
    provider = TracerProvider(resource=resource)

    try:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(
            endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT,
            insecure=True,
        )))
    except Exception as e:
        logger.warning("OTLP exporter unavailable (%s); exporting spans to console", e)
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    _initialized = True

    logger.info(
        "Telemetry initialized for %s -> %s",
        settings.OTEL_SERVICE_NAME,
        settings.OTEL_EXPORTER_OTLP_ENDPOINT,
    )
    return get_tracer()


def get_tracer() -> trace.Tracer:
    return trace.get_tracer(TRACER_NAME, settings.APP_VERSION)


@contextmanager
def llm_span(name: str, attributes: Optional[dict] = None):
    """
    Span around one provider call; errors are recorded and re-raised.

    Usage:
        with llm_span("generate_flashcards", {"deck.id": 1}) as span:
            result = await call_provider()
    """
    with get_tracer().start_as_current_span(name) as span:
        for key, value in (attributes or {}).items():
            span.set_attribute(key, str(value) if value is not None else "")
        try:
            yield span
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise


def trace_llm_call(
    model: str,
    prompt_tokens: int = 0,
    completion_tokens: int = 0,
    total_tokens: int = 0,
):
    """
    Record LLM-specific telemetry attributes on the current span.
    Call this within an active span to add token usage metrics.
    """
    span = trace.get_current_span()
    if span:
        span.set_attribute("llm.model", model)
        span.set_attribute("llm.tokens.prompt", prompt_tokens)
        span.set_attribute("llm.tokens.completion", completion_tokens)
        span.set_attribute("llm.tokens.total", total_tokens)
