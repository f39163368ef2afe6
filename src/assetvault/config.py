"""assetvault configuration.

Settings are read from the environment once, at process start, into
immutable StorageSettings and TracingSettings values that are passed to
whatever needs them.

Environment Variables:
    ASSETVAULT_UPLOADS_DIR: Root directory holding the public/ and private/
        partitions (default: ./uploads relative to the working directory)
    PUBLIC_OBJECT_SEARCH_PATHS: Comma-separated directories searched when
        serving public objects over HTTP (default: the public partition)
    ASSETVAULT_CACHE_MAX_AGE: max-age in seconds for the Cache-Control
        header on downloads (default: 3600)
    ASSETVAULT_OTEL_ENABLED: Set to "1" to emit OpenTelemetry spans
    ASSETVAULT_OTEL_SERVICE_NAME: service.name resource attribute
        (default: "assetvault")
    ASSETVAULT_OTEL_EXPORTER: "otlp", "console" or "memory" (default: "otlp")
    ASSETVAULT_OTEL_EXPORTER_OTLP_ENDPOINT: OTLP endpoint URL (optional)
    ASSETVAULT_OTEL_EXPORTER_OTLP_PROTOCOL: "grpc" or "http" (default: "grpc")
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

UPLOADS_DIR_ENV = "ASSETVAULT_UPLOADS_DIR"
PUBLIC_OBJECT_SEARCH_PATHS_ENV = "PUBLIC_OBJECT_SEARCH_PATHS"
CACHE_MAX_AGE_ENV = "ASSETVAULT_CACHE_MAX_AGE"
OTEL_ENABLED_ENV = "ASSETVAULT_OTEL_ENABLED"
OTEL_SERVICE_NAME_ENV = "ASSETVAULT_OTEL_SERVICE_NAME"
OTEL_EXPORTER_ENV = "ASSETVAULT_OTEL_EXPORTER"
OTEL_ENDPOINT_ENV = "ASSETVAULT_OTEL_EXPORTER_OTLP_ENDPOINT"
OTEL_PROTOCOL_ENV = "ASSETVAULT_OTEL_EXPORTER_OTLP_PROTOCOL"

DEFAULT_UPLOADS_DIRNAME = "uploads"
DEFAULT_CACHE_MAX_AGE = 3600
DEFAULT_SERVICE_NAME = "assetvault"
TRACING_EXPORTERS = ("otlp", "console", "memory")
OTLP_PROTOCOLS = ("grpc", "http")


def get_env_bool(key: str, default: bool = False, environ: Mapping[str, str] | None = None) -> bool:
    """Get boolean from environment variable."""
    env = os.environ if environ is None else environ
    val = env.get(key, "").strip().lower()
    if val in ("1", "true", "yes"):
        return True
    if val in ("0", "false", "no"):
        return False
    return default


def get_env_str(key: str, default: str = "", environ: Mapping[str, str] | None = None) -> str:
    """Get string from environment variable."""
    env = os.environ if environ is None else environ
    return env.get(key, default).strip()


def parse_search_paths(raw: str | None) -> tuple[str, ...]:
    """Split a comma-separated path list.

    Entries are trimmed, empty entries dropped, and duplicates removed while
    keeping first-seen order.
    """
    if not raw:
        return ()
    seen: dict[str, None] = {}
    for entry in raw.split(","):
        entry = entry.strip()
        if entry:
            seen.setdefault(entry, None)
    return tuple(seen)


def _parse_cache_max_age(raw: str | None) -> int:
    if raw is None or not raw.strip():
        return DEFAULT_CACHE_MAX_AGE
    try:
        value = int(raw.strip())
    except ValueError:
        logger.warning("Invalid %s=%r; using %d", CACHE_MAX_AGE_ENV, raw, DEFAULT_CACHE_MAX_AGE)
        return DEFAULT_CACHE_MAX_AGE
    if value < 0:
        logger.warning("Negative %s=%d; using 0", CACHE_MAX_AGE_ENV, value)
        return 0
    return value


@dataclass(frozen=True, slots=True)
class StorageSettings:
    """Immutable storage configuration.

    Attributes:
        uploads_dir: Root directory holding both partitions.
        public_search_paths: Directories searched when serving public objects.
        cache_max_age: Cache-Control max-age in seconds for downloads.
    """

    uploads_dir: Path
    public_search_paths: tuple[str, ...]
    cache_max_age: int = DEFAULT_CACHE_MAX_AGE

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> StorageSettings:
        """Build settings from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ`` (for tests).
        """
        env = os.environ if environ is None else environ

        uploads_raw = env.get(UPLOADS_DIR_ENV, "").strip()
        uploads_dir = Path(uploads_raw) if uploads_raw else Path.cwd() / DEFAULT_UPLOADS_DIRNAME
        uploads_dir = uploads_dir.resolve()

        search_paths = parse_search_paths(env.get(PUBLIC_OBJECT_SEARCH_PATHS_ENV))
        if not search_paths:
            search_paths = (str(uploads_dir / "public"),)

        return cls(
            uploads_dir=uploads_dir,
            public_search_paths=search_paths,
            cache_max_age=_parse_cache_max_age(env.get(CACHE_MAX_AGE_ENV)),
        )

    @classmethod
    def for_directory(cls, uploads_dir: str | Path) -> StorageSettings:
        """Build settings rooted at ``uploads_dir`` with default values."""
        resolved = Path(uploads_dir).resolve()
        return cls(uploads_dir=resolved, public_search_paths=(str(resolved / "public"),))


def _choice(env: Mapping[str, str], key: str, choices: tuple[str, ...], default: str) -> str:
    value = get_env_str(key, default, env).lower()
    if value not in choices:
        logger.warning("Unknown %s=%r; using %r", key, value, default)
        return default
    return value


@dataclass(frozen=True, slots=True)
class TracingSettings:
    """Immutable OpenTelemetry configuration.

    Attributes:
        enabled: Whether storage operations emit spans.
        service_name: ``service.name`` resource attribute.
        exporter: ``otlp``, ``console``, or ``memory`` (in-process capture).
        otlp_endpoint: OTLP collector endpoint; exporter default when None.
        otlp_protocol: ``grpc`` or ``http``.
    """

    enabled: bool = False
    service_name: str = DEFAULT_SERVICE_NAME
    exporter: str = "otlp"
    otlp_endpoint: str | None = None
    otlp_protocol: str = "grpc"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> TracingSettings:
        """Build tracing settings from environment variables.

        Unknown exporter or protocol values fall back to the defaults.
        """
        env = os.environ if environ is None else environ
        return cls(
            enabled=get_env_bool(OTEL_ENABLED_ENV, False, env),
            service_name=get_env_str(OTEL_SERVICE_NAME_ENV, "", env) or DEFAULT_SERVICE_NAME,
            exporter=_choice(env, OTEL_EXPORTER_ENV, TRACING_EXPORTERS, "otlp"),
            otlp_endpoint=get_env_str(OTEL_ENDPOINT_ENV, "", env) or None,
            otlp_protocol=_choice(env, OTEL_PROTOCOL_ENV, OTLP_PROTOCOLS, "grpc"),
        )
