"""Error envelope returned by every failing assetvault API response.

    {"code": "ACCESS_DENIED", "message": "...", "details": null, "request_id": "..."}

Storage failures use their FailureKind value as the code. Errors raised by
the framework itself (unknown route, wrong method) are coded from their
HTTP status.
"""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

REQUEST_ID_HEADER = "X-Request-Id"

FRAMEWORK_STATUS_CODES: dict[int, str] = {
    401: "UNAUTHORIZED",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


class ErrorEnvelope(BaseModel):
    """JSON body of an error response."""

    code: str
    message: str
    details: dict[str, Any] | None = None
    request_id: str


def request_id_for(request: Request) -> str:
    """Return the ID set by the request ID middleware, else the header, else a new uuid4."""
    request_id: str | None = getattr(request.state, "request_id", None)
    if request_id:
        return request_id
    return (request.headers.get(REQUEST_ID_HEADER) or "").strip() or str(uuid.uuid4())


def code_for_status(status_code: int) -> str:
    if status_code in FRAMEWORK_STATUS_CODES:
        return FRAMEWORK_STATUS_CODES[status_code]
    return "BAD_REQUEST" if status_code < 500 else "INTERNAL_ERROR"


def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Build an error JSONResponse echoing the request ID in body and header."""
    envelope = ErrorEnvelope(
        code=code, message=message, details=details, request_id=request_id_for(request)
    )
    response = JSONResponse(status_code=status_code, content=envelope.model_dump())
    response.headers[REQUEST_ID_HEADER] = envelope.request_id
    return response
