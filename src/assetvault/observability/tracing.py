"""OpenTelemetry bootstrap for assetvault.

Tracing is driven by TracingSettings (see assetvault.config). While it is
active, assetvault.storage.tracing wraps every storage operation in a span
obtained from get_tracer().

Never export object bytes, absolute paths, API keys, or Authorization headers.
"""

from __future__ import annotations

import logging
from typing import Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan, SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from assetvault.config import TracingSettings

logger = logging.getLogger(__name__)

_provider: TracerProvider | None = None
_memory_exporter: InMemorySpanExporter | None = None
_active: bool = False


def is_tracing_enabled() -> bool:
    """Return True while storage operations should emit spans."""
    return _active


def get_tracer(name: str) -> trace.Tracer:
    """Return a tracer from the assetvault provider, or the global one."""
    if _provider is not None:
        return _provider.get_tracer(name)
    return trace.get_tracer(name)


def _span_processor(settings: TracingSettings) -> SpanProcessor:
    """Build the span processor for the configured exporter.

    The OTLP exporters come from the ``otlp`` extra.
    """
    global _memory_exporter

    if settings.exporter == "memory":
        _memory_exporter = InMemorySpanExporter()
        return SimpleSpanProcessor(_memory_exporter)
    if settings.exporter == "console":
        return SimpleSpanProcessor(ConsoleSpanExporter())

    kwargs: dict[str, Any] = {}
    if settings.otlp_endpoint:
        kwargs["endpoint"] = settings.otlp_endpoint

    if settings.otlp_protocol == "http":
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
            OTLPSpanExporter as HTTPExporter,
        )

        return BatchSpanProcessor(HTTPExporter(**kwargs))

    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
        OTLPSpanExporter as GRPCExporter,
    )

    return BatchSpanProcessor(GRPCExporter(**kwargs))


def configure_tracing(settings: TracingSettings | None = None) -> bool:
    """Turn storage tracing on or off according to ``settings``.

    Settings default to TracingSettings.from_env(). The TracerProvider is
    installed on the first enabled call and reused afterwards, so later calls
    only toggle span emission and keep the first exporter.

    Returns:
        True if tracing is active after the call.
    """
    global _provider, _active

    if settings is None:
        settings = TracingSettings.from_env()

    if not settings.enabled:
        _active = False
        logger.debug("OpenTelemetry tracing disabled")
        return False

    if _provider is None:
        try:
            provider = TracerProvider(
                resource=Resource.create({"service.name": settings.service_name})
            )
            provider.add_span_processor(_span_processor(settings))
        except Exception as e:
            logger.error("Failed to configure OpenTelemetry tracing: %s", e)
            _active = False
            return False

        trace.set_tracer_provider(provider)
        _provider = provider
        logger.info(
            "OpenTelemetry tracing configured: service=%s, exporter=%s",
            settings.service_name,
            settings.exporter,
        )

    _active = True
    return True


def instrument_fastapi(app: Any, settings: TracingSettings | None = None) -> None:
    """Instrument a FastAPI application (requires the ``otlp`` extra)."""
    if settings is None:
        settings = TracingSettings.from_env()
    if not settings.enabled:
        return

    try:
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

        FastAPIInstrumentor.instrument_app(app, excluded_urls="health")
        logger.debug("FastAPI instrumented with OpenTelemetry")
    except Exception as e:
        logger.warning("Failed to instrument FastAPI: %s", e)


def get_captured_spans() -> list[ReadableSpan]:
    """Return spans captured by the ``memory`` exporter."""
    if _memory_exporter is not None:
        return list(_memory_exporter.get_finished_spans())
    return []


def clear_captured_spans() -> None:
    if _memory_exporter is not None:
        _memory_exporter.clear()


def reset_tracing() -> None:
    """Stop span emission and drop captured spans.

    The installed provider is kept; OpenTelemetry allows one per process.
    """
    global _active

    clear_captured_spans()
    _active = False
