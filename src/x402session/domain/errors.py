"""Domain-specific exceptions.

Every failure the session subsystem can report carries an ``ErrorKind`` tag so
callers at the tool boundary can branch on it without matching messages.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    SCOPE_MISMATCH = "scope_mismatch"
    SERVER_REJECTED_SESSION = "server_rejected_session"
    PAYMENT_CAP_EXCEEDED = "payment_cap_exceeded"
    TIMEOUT = "timeout"
    TRANSPORT_ERROR = "transport_error"
    INVALID_INPUT = "invalid_input"
    INTERNAL = "internal"


class SessionError(Exception):
    """Base class for tagged session failures."""

    kind: ErrorKind = ErrorKind.INTERNAL


class SessionNotFoundError(SessionError):
    """Raised when a session identifier is unknown to the store."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f'Session not found: "{session_id}"')


class SessionExpiredError(SessionError):
    """Raised when a known session is past its TTL or was ended."""

    kind = ErrorKind.EXPIRED

    def __init__(
        self, session_id: str, endpoint: str, expires_at: int, ended: bool = False
    ) -> None:
        self.session_id = session_id
        self.endpoint = endpoint
        self.expires_at = expires_at
        self.ended = ended
        state = "was ended" if ended else "has expired"
        super().__init__(f'Session "{session_id}" {state}')


class ScopeMismatchError(SessionError):
    """Raised when a URL is not covered by the session's endpoint and scope."""

    kind = ErrorKind.SCOPE_MISMATCH

    def __init__(self, url: str, endpoint: str, scope: str) -> None:
        self.url = url
        self.endpoint = endpoint
        self.scope = scope
        super().__init__(f"URL {url} is not covered by {scope} session for {endpoint}")


class ServerRejectedSessionError(SessionError):
    """Raised when the remote server still answers 402 despite session headers."""

    kind = ErrorKind.SERVER_REJECTED_SESSION

    def __init__(self, url: str, session_id: str, body: str = "") -> None:
        self.url = url
        self.session_id = session_id
        self.body = body
        super().__init__(f"Server returned 402 for {url} despite session {session_id}")


class PaymentCapExceededError(SessionError):
    """Raised before paying when the quoted amount exceeds the caller's cap."""

    kind = ErrorKind.PAYMENT_CAP_EXCEEDED

    def __init__(self, amount: int, cap: int) -> None:
        self.amount = amount
        self.cap = cap
        super().__init__(f"Payment of {amount} wei exceeds cap of {cap} wei")


class RequestTimeoutError(SessionError):
    """Raised when an outbound request exceeds its deadline."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, timeout_ms: int) -> None:
        self.timeout_ms = timeout_ms
        super().__init__(f"Request timed out after {timeout_ms}ms")


class TransportError(SessionError):
    """Raised on network-level failures talking to a remote server."""

    kind = ErrorKind.TRANSPORT_ERROR

    def __init__(self, detail: str, url: Optional[str] = None) -> None:
        self.detail = detail
        self.url = url
        super().__init__(detail)


class InvalidInputError(SessionError):
    """Raised for malformed amounts, URLs or TTLs."""

    kind = ErrorKind.INVALID_INPUT


class PaymentRequiredError(TransportError):
    """Raised when a server still answers 402 and no payment could be made."""

    def __init__(self, url: str, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Server returned 402 for {url}: {reason}", url=url)
