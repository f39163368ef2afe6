"""assetvault API error handling.

Provides VaultHttpError, the mapping from storage outcomes to HTTP errors,
and FastAPI exception handlers producing the JSON error envelope.
"""

import logging
from typing import Any

from fastapi import Request
from starlette.exceptions import HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from assetvault.api.error_model import code_for_status, error_response
from assetvault.storage.outcome import FailureKind, Outcome

logger = logging.getLogger(__name__)

HTTP_STATUS_FOR_FAILURE: dict[FailureKind, int] = {
    FailureKind.NOT_FOUND: 404,
    FailureKind.ACCESS_DENIED: 403,
    FailureKind.VALIDATION: 400,
    FailureKind.UPLOAD_FAILURE: 500,
    FailureKind.IO_FAILURE: 500,
}


class VaultHttpError(Exception):
    """Application-level HTTP error with structured error envelope.

    Attributes:
        status_code: HTTP status code (e.g., 401, 404, 500).
        code: Machine-readable error code.
        message: Human-readable error message.
        details: Optional dict with additional error context.
    """

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details


def raise_for_outcome(outcome: Outcome[Any]) -> None:
    """Raise VaultHttpError if ``outcome`` failed.

    I/O failure messages are replaced with a generic message so filesystem
    details never reach clients.
    """
    if outcome.failure is None:
        return

    status = HTTP_STATUS_FOR_FAILURE[outcome.failure]
    message = outcome.message if status < 500 else "Storage operation failed"
    raise VaultHttpError(status_code=status, code=outcome.failure.value, message=message)


async def vault_http_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """FastAPI exception handler for VaultHttpError."""
    assert isinstance(exc, VaultHttpError)

    return error_response(request, exc.status_code, exc.code, exc.message, exc.details)


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """FastAPI exception handler for framework HTTPExceptions (404 route, 405 method)."""
    assert isinstance(exc, HTTPException)

    message = str(exc.detail) if exc.detail else f"HTTP {exc.status_code}"
    return error_response(request, exc.status_code, code_for_status(exc.status_code), message)


async def request_validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """FastAPI exception handler for RequestValidationError.

    Does not expose raw validation internals.
    """
    assert isinstance(exc, RequestValidationError)

    safe_details: list[dict[str, Any]] = []
    for error in exc.errors():
        loc = error.get("loc", ())
        safe_loc = [str(part) for part in loc if part not in ("body", "query", "path")]
        safe_details.append(
            {
                "field": ".".join(safe_loc) if safe_loc else "request",
                "message": error.get("msg", "Validation error"),
            }
        )

    return error_response(
        request,
        422,
        "REQUEST_VALIDATION_FAILED",
        "Request validation failed",
        {"errors": safe_details} if safe_details else None,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler: fails closed with a generic 500, logs the exception."""
    request_id = getattr(request.state, "request_id", None)

    logger.exception(
        "Unhandled exception: %s",
        type(exc).__name__,
        extra={"request_id": request_id},
    )

    return error_response(request, 500, "INTERNAL_ERROR", "An internal error occurred")
