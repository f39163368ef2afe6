"""assetvault FastAPI application factory.

The object store is constructed once (by the caller or from the
environment) and stored on ``app.state``; routes receive it through a
dependency rather than a module-level instance.
"""

import uuid
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, Response
from starlette.exceptions import HTTPException
from fastapi.exceptions import RequestValidationError

from assetvault import __version__
from assetvault.api.auth import ApiKeyRecord, build_group_directory, load_api_key_registry
from assetvault.api.error_model import REQUEST_ID_HEADER
from assetvault.api.errors import (
    VaultHttpError,
    generic_exception_handler,
    http_exception_handler,
    request_validation_error_handler,
    vault_http_error_handler,
)
from assetvault.api.routes.health import router as health_router
from assetvault.api.routes.objects import router as objects_router
from assetvault.api.routes.public import router as public_router
from assetvault.config import StorageSettings, TracingSettings
from assetvault.observability.tracing import configure_tracing, instrument_fastapi
from assetvault.storage.filesystem_store import FilesystemObjectStore


async def attach_request_id(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Attach a request ID to request.state and the X-Request-Id response header.

    A non-empty incoming X-Request-Id is reused; otherwise a uuid4 is generated.
    """
    incoming = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
    request_id = incoming or str(uuid.uuid4())
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


def create_app(
    store: FilesystemObjectStore | None = None,
    api_key_registry: dict[str, ApiKeyRecord] | None = None,
    settings: StorageSettings | None = None,
    tracing: TracingSettings | None = None,
) -> FastAPI:
    """Create and configure the assetvault FastAPI application.

    Args:
        store: Object store to serve. If None, one is built from ``settings``
            (or the environment) with group membership taken from the API key
            registry.
        api_key_registry: API key registry. If None, loaded from
            ASSETVAULT_API_KEYS_JSON.
        settings: Storage settings used when ``store`` is None.
        tracing: OpenTelemetry settings. If None, read from the environment.

    Returns:
        Configured FastAPI application instance.
    """
    if api_key_registry is None:
        api_key_registry = load_api_key_registry()

    if store is None:
        store = FilesystemObjectStore(
            settings=settings or StorageSettings.from_env(),
            groups=build_group_directory(api_key_registry),
        )

    app = FastAPI(
        title="assetvault API",
        description="Access-controlled object storage for uploaded assets",
        version=__version__,
    )

    app.state.object_store = store
    app.state.api_key_registry = api_key_registry

    if tracing is None:
        tracing = TracingSettings.from_env()
    configure_tracing(tracing)

    app.middleware("http")(attach_request_id)

    instrument_fastapi(app, tracing)

    app.add_exception_handler(VaultHttpError, vault_http_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(health_router)
    app.include_router(objects_router)
    app.include_router(public_router)

    return app
