"""OpenTelemetry tracing for object storage operations.

Span attributes never include absolute filesystem paths or raw object
names; names are exported as SHA256 digests for correlation.
"""

from __future__ import annotations

import functools
import hashlib
import logging
from collections.abc import Callable
from typing import Any, TypeVar, cast

from assetvault.observability.tracing import get_tracer, is_tracing_enabled
from assetvault.storage.models import ObjectMetadata
from assetvault.storage.outcome import Outcome

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

TRACER_NAME = "assetvault.object_store"

def traced_storage_operation(operation: str) -> Callable[[F], F]:
    """Decorator to trace a storage facade method with OpenTelemetry.

    The object name (or list prefix) is taken from the first positional
    argument after ``self``, or from the ``name``/``prefix`` keyword.

    Args:
        operation: Operation name (e.g., "upload", "download", "delete").

    Returns:
        Decorated function that emits spans when tracing is enabled.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
            if not is_tracing_enabled():
                return func(self, *args, **kwargs)

            name = str(args[0]) if args else str(kwargs.get("name", kwargs.get("prefix", "")))

            tracer = get_tracer(TRACER_NAME)
            with tracer.start_as_current_span(f"{TRACER_NAME}.{operation}") as span:
                name_sha256 = hashlib.sha256(name.encode("utf-8")).hexdigest()
                span.set_attribute("assetvault.object_name_sha256", name_sha256)
                span.set_attribute("storage.backend", getattr(self, "backend_name", "unknown"))
                visibility = kwargs.get("visibility")
                if visibility is not None:
                    span.set_attribute("assetvault.visibility", str(visibility))

                try:
                    result = func(self, *args, **kwargs)
                except Exception as e:
                    span.set_attribute("error", True)
                    span.set_attribute("error.type", type(e).__name__)
                    raise

                _add_result_attributes(span, result, operation)
                return result

        return cast(F, wrapper)

    return decorator

def _add_result_attributes(span: Any, result: Any, operation: str) -> None:
    """Add safe result attributes (outcome, size, content type, counts)."""
    try:
        value = result
        if isinstance(result, Outcome):
            span.set_attribute(
                "assetvault.outcome", result.failure.value if result.failure else "OK"
            )
            value = result.value

        if isinstance(value, ObjectMetadata):
            span.set_attribute("assetvault.object_size_bytes", value.size)
            if value.content_type:
                span.set_attribute("assetvault.object_content_type", value.content_type)
        elif isinstance(value, bytes):
            span.set_attribute("assetvault.object_size_bytes", len(value))

        if operation == "list" and isinstance(result, list):
            span.set_attribute("assetvault.object_count", len(result))
        if isinstance(result, bool):
            span.set_attribute("assetvault.result", result)
        if isinstance(result, int) and not isinstance(result, bool):
            span.set_attribute("http.response.status_code", result)
    except Exception as e:
        logger.debug("Failed to add result attributes to span: %s", e)
