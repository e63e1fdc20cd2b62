"""Use cases behind the four session lifecycle tools."""

from __future__ import annotations

import logging

from ....domain.errors import SessionNotFoundError, ServerRejectedSessionError
from ....domain.session.session_store import SessionStore
from ....domain.shared.http_transport_protocol import HttpTransportProtocol
from ....crypto.session_token import decode_session_token
from ....env import chain_name
from ..dtos import (
    SessionEndDTO,
    SessionFetchDTO,
    SessionStartDTO,
    SessionStatusDTO,
    ToolResult,
)
from ..formatting import (
    FETCH_BODY_LIMIT,
    START_BODY_LIMIT,
    abbreviate_signature,
    code_block,
    format_timestamp,
    format_token,
    format_ttl,
    minutes_remaining,
    truncate_body,
    ttl_progress_bar,
)
from .router import PAYMENT_REQUIRED, RouteState, SessionRouter
from .validators import (
    parse_max_payment_eth,
    require_active_session,
    require_url_covered,
)

logger = logging.getLogger(__name__)


class SessionToolService:
    """Start, fetch through, inspect and end sessions.

    Methods return a successful ``ToolResult`` or raise a ``SessionError``;
    rendering failures is the tool boundary's job.
    """

    def __init__(
        self,
        store: SessionStore,
        router: SessionRouter,
        transport: HttpTransportProtocol,
        chain_id: int,
        default_ttl_seconds: int = 3600,
    ):
        self.store = store
        self.router = router
        self.transport = transport
        self.chain_id = chain_id
        self.default_ttl_seconds = default_ttl_seconds

    async def start(self, dto: SessionStartDTO) -> ToolResult:
        max_payment_wei = parse_max_payment_eth(dto.max_payment_eth)
        outcome = await self.router.establish_session(
            dto.endpoint,
            scope=dto.scope,
            ttl_seconds=dto.ttl_seconds,
            label=dto.label,
            method=dto.method,
            headers=dto.headers,
            body=dto.body,
            timeout_ms=dto.timeout_ms,
            max_payment_wei=max_payment_wei,
        )
        if outcome.state == RouteState.FAILED and outcome.error is not None:
            raise outcome.error
        resp = outcome.response
        assert resp is not None
        body = truncate_body(resp.text, START_BODY_LIMIT, "\n... [truncated]")

        if outcome.session is None or outcome.payment is None:
            return ToolResult.ok(
                "ℹ️ **No Payment Required**\n\n"
                f"  Endpoint: {dto.endpoint}\n"
                f"  Status:   {resp.status_code} {resp.reason_phrase}\n\n"
                "No x402 payment was needed. The endpoint responded without requiring payment.\n"
                "No session was created and none is needed: use x402_pay directly for free endpoints.\n\n"
                "📄 **Response Body**\n" + code_block(body)
            )

        session = outcome.session
        payment = outcome.payment
        ttl_remaining = session.expires_at - self.store.now()
        out = "🔐 **x402 Session Established**\n\n"
        out += f"  Session ID:    {session.session_id}\n"
        out += f"  Endpoint:      {session.endpoint}\n"
        out += f"  Scope:         {session.scope}\n"
        if session.label:
            out += f"  Label:         {session.label}\n"
        out += f"  Network:       {chain_name(self.chain_id)}\n"
        out += (
            f"  TTL:           {minutes_remaining(ttl_remaining)}m "
            f"(expires {format_timestamp(session.expires_at)})\n\n"
        )
        out += "💳 **Session Payment**\n"
        out += f"  Amount:    {payment.amount} (base units)\n"
        out += f"  Recipient: {payment.recipient}\n"
        out += f"  TX Hash:   {payment.tx_hash}\n\n"
        out += "✅ **Next Steps**\n"
        out += (
            f'  Use `x402_session_fetch` with session_id="{session.session_id}" '
            "for all subsequent\n"
        )
        out += (
            f"  requests to {dto.endpoint}; no further payments will be made "
            "during this session.\n"
        )
        out += "  Check session status with `x402_session_status`.\n\n"
        out += f"📄 **Initial Response** ({resp.status_code})\n"
        out += code_block(body)
        return ToolResult.ok(out)

    async def fetch(self, dto: SessionFetchDTO) -> ToolResult:
        record = require_active_session(self.store.lookup(dto.session_id), dto.session_id)
        require_url_covered(record, dto.url)

        request = self.router.build_request(
            dto.method, dto.headers, dto.body, dto.timeout_ms, session=record
        )
        resp = await self.transport.send(dto.url, request)
        if resp.status_code == PAYMENT_REQUIRED:
            logger.warning(
                "Server answered 402 to session %s for %s", dto.session_id, dto.url
            )
            raise ServerRejectedSessionError(dto.url, dto.session_id, resp.text)

        self.store.record_use(dto.session_id)
        session = self.store.lookup(dto.session_id).record or record
        ttl_remaining = session.expires_at - self.store.now()

        out = f"⚡ **x402 Session Fetch** (call #{session.call_count})\n\n"
        out += f"  Session ID:  {session.session_id}\n"
        if session.label:
            out += f"  Label:       {session.label}\n"
        out += f"  URL:         {dto.url}\n"
        out += f"  Method:      {dto.method}\n"
        out += f"  Status:      {resp.status_code} {resp.reason_phrase}\n"
        out += f"  Session TTL: {minutes_remaining(ttl_remaining)}m remaining\n"
        out += "  💰 No payment: session token used\n\n"
        out += "📄 **Response Body**\n"
        out += code_block(truncate_body(resp.text, FETCH_BODY_LIMIT))
        return ToolResult.ok(out)

    async def status(self, dto: SessionStatusDTO) -> ToolResult:
        now = self.store.now()
        if dto.session_id:
            lookup = self.store.lookup(dto.session_id)
            if not lookup.found or lookup.record is None:
                raise SessionNotFoundError(dto.session_id)
            session, expired = lookup.record, lookup.expired
            ttl_remaining = max(0, session.expires_at - now)
            decoded = decode_session_token(session.session_token)

            out = "⏰ **Session Expired**\n\n" if expired else "🔐 **Session Details**\n\n"
            out += f"  Session ID:    {session.session_id}\n"
            if session.label:
                out += f"  Label:         {session.label}\n"
            if lookup.ended_at is not None:
                state = "❌ Ended"
            else:
                state = "❌ Expired" if expired else "✅ Active"
            out += f"  Status:        {state}\n"
            out += f"  Endpoint:      {session.endpoint}\n"
            out += f"  Scope:         {session.scope}\n"
            out += f"  Wallet:        {session.wallet_address}\n\n"

            out += "⏱️  **Timing**\n"
            out += f"  Created:       {format_timestamp(session.created_at)}\n"
            if lookup.ended_at is not None:
                out += f"  Ended:         {format_timestamp(lookup.ended_at)}\n"
            else:
                out += f"  Expires:       {format_timestamp(session.expires_at)}\n"
            if not expired:
                out += f"  TTL Remaining: {format_ttl(ttl_remaining)}\n"
            out += f"  Last Used:     {format_timestamp(session.last_used_at)}\n"
            out += f"  Call Count:    {session.call_count}\n\n"

            out += "💳 **Session Payment**\n"
            out += f"  TX Hash:       {session.payment_tx_hash}\n"
            out += f"  Amount:        {session.payment_amount} (base units)\n"
            out += f"  Recipient:     {session.payment_recipient}\n"
            out += f"  Token:         {format_token(session.payment_token)}\n\n"

            if decoded is not None:
                out += "🔏 **Token Info**\n"
                out += f"  Protocol:      {decoded.payload.version}\n"
                out += f"  Signature:     {abbreviate_signature(decoded.signature)}\n"
            return ToolResult.ok(out)

        active = self.store.list_active()
        if not active:
            return ToolResult.ok(
                "📋 **Active Sessions**\n\n"
                "No active sessions. Use x402_session_start to establish a session.\n\n"
                "ℹ️  Sessions are stored in-process and survive for their configured TTL.\n"
                f"   Default TTL: {self.default_ttl_seconds} seconds "
                f"({format_ttl(self.default_ttl_seconds)}). "
                "Set SESSION_TTL_SECONDS to override."
            )

        out = f"📋 **Active x402 Sessions** ({len(active)})\n\n"
        for session in active:
            ttl_remaining = max(0, session.expires_at - now)
            bar = ttl_progress_bar(ttl_remaining, session.expires_at - session.created_at)
            out += "─" * 37 + "\n"
            out += f"  ID:       {session.session_id}\n"
            if session.label:
                out += f"  Label:    {session.label}\n"
            out += f"  Endpoint: {session.endpoint}\n"
            out += f"  Scope:    {session.scope}\n"
            out += f"  TTL:      {format_ttl(ttl_remaining)} {bar}\n"
            out += f"  Calls:    {session.call_count}\n"
            out += (
                f"  Payment:  {session.payment_amount} base units → "
                f"TX {session.payment_tx_hash[:18]}...\n\n"
            )
        out += "\nUse x402_session_fetch with a session_id to make free calls within a session.\n"
        out += 'Use x402_session_status with session_id="..." for full session details.'
        return ToolResult.ok(out)

    async def end(self, dto: SessionEndDTO) -> ToolResult:
        lookup = self.store.lookup(dto.session_id)
        if not lookup.found or lookup.record is None:
            raise SessionNotFoundError(dto.session_id)
        session = lookup.record
        if lookup.expired:
            return ToolResult.ok(
                f'ℹ️ Session "{dto.session_id}" was already expired.\n'
                f"Endpoint: {session.endpoint}"
            )

        self.store.end(dto.session_id)
        return ToolResult.ok(
            "✅ **Session Closed**\n\n"
            f"  Session ID: {session.session_id}\n"
            f"  Endpoint:   {session.endpoint}\n"
            f"  Calls made: {session.call_count}\n\n"
            "The session has been closed and can no longer be used.\n"
            "Use x402_session_start to establish a new session when needed."
        )
