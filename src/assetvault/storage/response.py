"""Output sinks for writing a stored object as an HTTP-style response.

The storage layer does not depend on a web framework. It writes status,
headers, and body into a sink; HTTP collaborators turn the sink into their
own response type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol


class ResponseSink(Protocol):
    """Destination for a downloaded object."""

    def set_status(self, status_code: int) -> None: ...

    def set_header(self, name: str, value: str) -> None: ...

    def send(self, body: bytes) -> None: ...

    def send_json(self, status_code: int, payload: dict[str, Any]) -> None: ...


@dataclass
class BufferedResponseSink:
    """ResponseSink that keeps the response in memory.

    Attributes:
        status_code: Status set on the sink (200 until changed).
        headers: Headers set on the sink, in insertion order.
        body: Raw body bytes (for ``send``).
        json_body: Payload for ``send_json`` responses, else None.
    """

    status_code: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    json_body: dict[str, Any] | None = None

    def set_status(self, status_code: int) -> None:
        self.status_code = status_code

    def set_header(self, name: str, value: str) -> None:
        self.headers[name] = value

    def send(self, body: bytes) -> None:
        self.body = body

    def send_json(self, status_code: int, payload: dict[str, Any]) -> None:
        self.status_code = status_code
        self.headers["Content-Type"] = "application/json"
        self.json_body = payload
