"""assetvault observability: OpenTelemetry tracing bootstrap."""

from assetvault.observability.tracing import configure_tracing, get_tracer, is_tracing_enabled

__all__ = ["configure_tracing", "get_tracer", "is_tracing_enabled"]
