"""Data Transfer Objects for the session tools."""

from __future__ import annotations

from typing import Literal, Optional
from urllib.parse import urlparse
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...domain.errors import ErrorKind
from ...domain.session.entities import SessionScope

HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]

MIN_TOOL_TTL_SECONDS = 60
MAX_TOOL_TTL_SECONDS = 30 * 24 * 60 * 60


def _validate_http_url(v: str) -> str:
    parsed = urlparse(v)
    if parsed.scheme not in {"http", "https"}:
        raise ValueError("URL must start with http:// or https://")
    if not parsed.netloc:
        raise ValueError("URL must include a host")
    return v


def _validate_uuid(v: str) -> str:
    try:
        UUID(v)
    except ValueError as e:
        raise ValueError(f"Invalid session id: {v!r}") from e
    return v


class _ToolInput(BaseModel):
    model_config = ConfigDict(extra="forbid")


class _RequestOptions(_ToolInput):
    method: HttpMethod = Field("GET", description="HTTP method (default: GET)")
    headers: Optional[dict[str, str]] = Field(
        None, description="Additional HTTP request headers"
    )
    body: Optional[str] = Field(None, description="Request body for POST/PUT/PATCH")
    timeout_ms: int = Field(
        30000,
        ge=1000,
        le=60000,
        description="Request timeout in milliseconds (default: 30000)",
    )


class X402PayDTO(_RequestOptions):
    """Input for ``x402_pay``."""

    url: str = Field(
        ..., description="URL to fetch. HTTP 402 responses are paid automatically."
    )
    max_payment_eth: Optional[str] = Field(
        None,
        description='Maximum payment in ETH (e.g. "0.001"). Rejects if exceeded.',
    )
    skip_session_check: bool = Field(
        False,
        description="Skip session auto-detection and force a fresh payment",
    )

    validate_url = field_validator("url")(_validate_http_url)


class SessionStartDTO(_RequestOptions):
    """Input for ``x402_session_start``."""

    endpoint: str = Field(
        ..., description="Base URL or endpoint to establish a session for"
    )
    scope: SessionScope = Field(
        "prefix",
        description='"prefix" covers every path under the endpoint, "exact" only the URL itself',
    )
    ttl_seconds: Optional[int] = Field(
        None,
        ge=MIN_TOOL_TTL_SECONDS,
        le=MAX_TOOL_TTL_SECONDS,
        description="Session lifetime in seconds (default 3600). Min 60, max 30 days.",
    )
    label: Optional[str] = Field(
        None, max_length=100, description="Optional human-readable label"
    )
    max_payment_eth: Optional[str] = Field(
        None, description="Maximum ETH to pay for session establishment"
    )

    validate_endpoint = field_validator("endpoint")(_validate_http_url)


class SessionFetchDTO(_RequestOptions):
    """Input for ``x402_session_fetch``."""

    session_id: str = Field(..., description="Session ID from x402_session_start")
    url: str = Field(..., description="URL to fetch; must be covered by the session")

    validate_session_id = field_validator("session_id")(_validate_uuid)
    validate_url = field_validator("url")(_validate_http_url)


class SessionStatusDTO(_ToolInput):
    """Input for ``x402_session_status``."""

    session_id: Optional[str] = Field(
        None, description="Session to inspect. Omit to list active sessions."
    )


class SessionEndDTO(_ToolInput):
    """Input for ``x402_session_end``."""

    session_id: str = Field(..., description="Session ID to close")

    validate_session_id = field_validator("session_id")(_validate_uuid)


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolResult(BaseModel):
    """Structured outcome of one tool call."""

    content: list[TextContent]
    is_error: bool = False
    error: Optional[ErrorKind] = None

    @classmethod
    def ok(cls, text: str) -> "ToolResult":
        return cls(content=[TextContent(text=text)])

    @classmethod
    def failure(cls, text: str, kind: ErrorKind) -> "ToolResult":
        return cls(content=[TextContent(text=text)], is_error=True, error=kind)

    @property
    def text(self) -> str:
        return "\n".join(block.text for block in self.content)


class ToolDescriptorDTO(BaseModel):
    name: str
    description: str
    input_schema: dict
