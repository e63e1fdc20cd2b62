"""Transport-neutral request/response values and the plain HTTP transport contract."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional, Protocol

BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


@dataclass(frozen=True)
class OutboundRequest:
    """An outbound HTTP request, minus the URL."""

    method: str = "GET"
    headers: dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None
    timeout_ms: int = 30000

    def with_headers(self, extra: dict[str, str]) -> "OutboundRequest":
        return replace(self, headers={**self.headers, **extra})


@dataclass(frozen=True)
class HttpResult:
    """What the session layer needs from a response. Header names are lower-case."""

    status_code: int
    reason_phrase: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    text: str = ""

    def header(self, name: str) -> Optional[str]:
        return self.headers.get(name.lower())


class HttpTransportProtocol(Protocol):
    """Plain request/response transport with a per-request timeout.

    Implementations never raise for HTTP status codes. They raise
    ``RequestTimeoutError`` or ``TransportError`` for failures below HTTP.
    """

    async def send(self, url: str, request: OutboundRequest) -> HttpResult:
        ...
