"""Human-readable text for tool results."""

from __future__ import annotations

import math
from datetime import datetime, timezone

from ...domain.errors import (
    ScopeMismatchError,
    ServerRejectedSessionError,
    SessionError,
    SessionExpiredError,
    SessionNotFoundError,
)
from ...domain.session.entities import ZERO_ADDRESS

FETCH_BODY_LIMIT = 8000
START_BODY_LIMIT = 4000
REJECTED_BODY_LIMIT = 2000


def format_ttl(seconds: int) -> str:
    """``Expired``, ``45s``, ``5m 3s``, ``2h 10m`` or ``2h``."""
    if seconds <= 0:
        return "Expired"
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m {seconds % 60}s"
    hours, minutes = seconds // 3600, (seconds % 3600) // 60
    return f"{hours}h {minutes}m" if minutes > 0 else f"{hours}h"


def ttl_progress_bar(remaining: int, total: int) -> str:
    if total <= 0:
        return ""
    pct = max(0.0, min(1.0, remaining / total))
    filled = int(math.floor(pct * 10 + 0.5))
    bar = "█" * filled + "░" * (10 - filled)
    if pct > 0.5:
        badge = "🟢"
    elif pct > 0.2:
        badge = "🟡"
    else:
        badge = "🔴"
    return f"{badge} [{bar}]"


def minutes_remaining(seconds: int) -> int:
    return math.ceil(seconds / 60)


def format_timestamp(ts: int) -> str:
    """ISO-8601 UTC with millisecond precision, ``Never`` for 0."""
    if ts == 0:
        return "Never"
    dt = datetime.fromtimestamp(ts, tz=timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.000Z")


def format_token(token: str) -> str:
    return "ETH (native)" if token.lower() == ZERO_ADDRESS else token


def abbreviate_signature(signature: str) -> str:
    return f"{signature[:20]}...{signature[-8:]}"


def truncate_body(text: str, limit: int, marker: str = "\n\n... [response truncated]") -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + marker


def code_block(text: str) -> str:
    return "```\n" + text + "\n```"


def render_session_error(error: SessionError, context: str) -> str:
    """Render a tagged failure the way each tool reports it."""
    if isinstance(error, SessionNotFoundError):
        return (
            f'❌ Session not found: "{error.session_id}"\n\n'
            "Create a new session with x402_session_start first."
        )
    if isinstance(error, SessionExpiredError):
        when = "Ended at:  " if error.ended else "Expired at:"
        return (
            "⏰ **Session Expired**\n\n"
            f"  Session ID: {error.session_id}\n"
            f"  Endpoint:   {error.endpoint}\n"
            f"  {when} {format_timestamp(error.expires_at)}\n\n"
            "Call x402_session_start to establish a new session for this endpoint."
        )
    if isinstance(error, ScopeMismatchError):
        match_kind = "exact match" if error.scope == "exact" else "prefix match"
        return (
            "❌ URL not covered by this session.\n\n"
            f"  Session endpoint: {error.endpoint}\n"
            f"  Session scope:    {error.scope}\n"
            f"  Requested URL:    {error.url}\n\n"
            f"This URL is outside the session's {match_kind} scope.\n"
            "Create a new session for this URL with x402_session_start, "
            "or use x402_pay for a one-time request."
        )
    if isinstance(error, ServerRejectedSessionError):
        return (
            "⚠️ **Server returned 402: Session Not Recognised**\n\n"
            f"  URL:        {error.url}\n"
            f"  Session ID: {error.session_id}\n\n"
            "The server returned HTTP 402 despite session headers being sent.\n"
            "It does not support x402 session tokens, or it invalidated this session.\n\n"
            "Options:\n"
            "  • Use x402_pay for a one-time payment to this URL\n"
            "  • Contact the API provider about x402 session support\n\n"
            "📄 **Response Body**\n"
            + code_block(
                truncate_body(error.body, REJECTED_BODY_LIMIT, "\n... [truncated]")
            )
        )
    return f"❌ {context} failed: {error}"
