"""Unit tests for tool result formatting helpers."""

import pytest

from x402session.application.session.formatting import (
    abbreviate_signature,
    format_timestamp,
    format_token,
    format_ttl,
    minutes_remaining,
    render_session_error,
    truncate_body,
    ttl_progress_bar,
)
from x402session.domain.errors import (
    PaymentCapExceededError,
    ScopeMismatchError,
    ServerRejectedSessionError,
    SessionExpiredError,
    SessionNotFoundError,
)
from x402session.domain.session.entities import ZERO_ADDRESS


@pytest.mark.parametrize(
    "seconds, expected",
    [
        (0, "Expired"),
        (-5, "Expired"),
        (45, "45s"),
        (60, "1m 0s"),
        (303, "5m 3s"),
        (3600, "1h"),
        (7800, "2h 10m"),
    ],
)
def test_format_ttl(seconds: int, expected: str) -> None:
    assert format_ttl(seconds) == expected


def test_progress_bar_bands() -> None:
    assert ttl_progress_bar(100, 100) == "🟢 [██████████]"
    assert ttl_progress_bar(40, 100) == "🟡 [████░░░░░░]"
    assert ttl_progress_bar(10, 100) == "🔴 [█░░░░░░░░░]"
    assert ttl_progress_bar(0, 100) == "🔴 [░░░░░░░░░░]"
    assert ttl_progress_bar(10, 0) == ""


def test_minutes_remaining_rounds_up() -> None:
    assert minutes_remaining(1) == 1
    assert minutes_remaining(60) == 1
    assert minutes_remaining(61) == 2


def test_format_timestamp() -> None:
    assert format_timestamp(0) == "Never"
    assert format_timestamp(1_700_000_000) == "2023-11-14T22:13:20.000Z"


def test_format_token() -> None:
    assert format_token(ZERO_ADDRESS) == "ETH (native)"
    assert format_token("0xToken") == "0xToken"


def test_abbreviate_signature() -> None:
    sig = "0x" + "a" * 18 + "b" * 100 + "12345678"
    assert abbreviate_signature(sig) == "0x" + "a" * 18 + "...12345678"


def test_truncate_body() -> None:
    assert truncate_body("short", 10) == "short"
    assert truncate_body("x" * 12, 10) == "x" * 10 + "\n\n... [response truncated]"


class TestRenderSessionError:
    """Test per-kind error rendering."""

    def test_not_found(self) -> None:
        text = render_session_error(SessionNotFoundError("abc"), "Session fetch")
        assert text.startswith('❌ Session not found: "abc"')

    def test_expired(self) -> None:
        text = render_session_error(
            SessionExpiredError("abc", "https://api.example.com", 1_700_000_000),
            "Session fetch",
        )
        assert "⏰ **Session Expired**" in text
        assert "Expired at: 2023-11-14T22:13:20.000Z" in text

    def test_ended(self) -> None:
        text = render_session_error(
            SessionExpiredError(
                "abc", "https://api.example.com", 1_700_000_000, ended=True
            ),
            "Session fetch",
        )
        assert "Ended at:   2023-11-14T22:13:20.000Z" in text
        assert "Expired at" not in text
        assert "Never" not in text

    def test_scope_mismatch(self) -> None:
        text = render_session_error(
            ScopeMismatchError("https://b.example.com", "https://a.example.com", "exact"),
            "Session fetch",
        )
        assert "URL not covered" in text
        assert "exact match" in text

    def test_server_rejected_truncates_body(self) -> None:
        text = render_session_error(
            ServerRejectedSessionError("https://a.example.com", "abc", "y" * 3000),
            "Session fetch",
        )
        assert "Server returned 402" in text
        assert "y" * 2000 + "\n... [truncated]" in text
        assert "y" * 2001 not in text

    def test_generic_failure(self) -> None:
        text = render_session_error(PaymentCapExceededError(10, 5), "Payment")
        assert text == "❌ Payment failed: Payment of 10 wei exceeds cap of 5 wei"
