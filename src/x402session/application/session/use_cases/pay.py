"""Use case behind the ``x402_pay`` tool."""

from __future__ import annotations

from ....domain.session.session_store import SessionStore
from ....env import chain_name
from ..dtos import ToolResult, X402PayDTO
from ..formatting import (
    FETCH_BODY_LIMIT,
    code_block,
    minutes_remaining,
    truncate_body,
)
from .router import RouteState, SessionRouter
from .validators import parse_max_payment_eth


class PayToolService:
    """Fetch a URL, reusing a covering session when one exists, paying otherwise."""

    def __init__(self, store: SessionStore, router: SessionRouter, chain_id: int):
        self.store = store
        self.router = router
        self.chain_id = chain_id

    async def pay(self, dto: X402PayDTO) -> ToolResult:
        max_payment_wei = parse_max_payment_eth(dto.max_payment_eth)
        outcome = await self.router.route(
            dto.url,
            method=dto.method,
            headers=dto.headers,
            body=dto.body,
            timeout_ms=dto.timeout_ms,
            max_payment_wei=max_payment_wei,
            skip_session_check=dto.skip_session_check,
        )
        if outcome.state == RouteState.FAILED and outcome.error is not None:
            raise outcome.error
        resp = outcome.response
        assert resp is not None
        body = truncate_body(resp.text, FETCH_BODY_LIMIT)

        header = "🌐 **x402 Fetch Result**"
        if outcome.state == RouteState.DONE_NO_PAY:
            header += " (session)"
        out = header + "\n\n"
        out += f"  URL:     {dto.url}\n"
        out += f"  Method:  {dto.method}\n"
        out += f"  Status:  {resp.status_code} {resp.reason_phrase}\n"
        out += f"  Network: {chain_name(self.chain_id)}\n"

        if outcome.state == RouteState.DONE_NO_PAY and outcome.session is not None:
            session = outcome.session
            ttl_remaining = session.expires_at - self.store.now()
            out += "\n🔐 **Session Used** (no payment)\n"
            out += f"  Session ID: {session.session_id}\n"
            if session.label:
                out += f"  Label:      {session.label}\n"
            out += f"  TTL:        {minutes_remaining(ttl_remaining)}m remaining\n"
            out += f"  Calls:      {session.call_count}\n"
        elif outcome.payment is not None:
            payment = outcome.payment
            if outcome.session_rejected:
                out += "\n⚠️ Server did not accept the active session; paid instead.\n"
            out += "\n💳 **Payment Made**\n"
            out += f"  Amount:    {payment.amount} (base units)\n"
            out += f"  Recipient: {payment.recipient}\n"
            out += f"  TX Hash:   {payment.tx_hash}\n"
            out += (
                "\n💡 Tip: Use x402_session_start to pay once for a session "
                "and skip per-call payments.\n"
            )
        else:
            out += "\n✅ No payment required\n"

        out += "\n📄 **Response Body**\n"
        out += code_block(body)
        return ToolResult.ok(out)
