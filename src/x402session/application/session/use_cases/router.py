"""Request dispatch between the session path and the pay-per-call path."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from prometheus_client import Counter

from ....domain.errors import (
    PaymentCapExceededError,
    PaymentRequiredError,
    SessionError,
)
from ....domain.session.entities import (
    CreateSessionOptions,
    SessionRecord,
    SessionScope,
    ZERO_ADDRESS,
    build_session_headers,
)
from ....domain.session.session_store import SessionStore
from ....domain.shared.http_transport_protocol import (
    BODY_METHODS,
    HttpResult,
    HttpTransportProtocol,
    OutboundRequest,
)
from ....domain.shared.payment_client_protocol import (
    PaymentClientFactory,
    PaymentClientOptions,
    PaymentLog,
    PaymentQuote,
)
from ....domain.shared.signer_protocol import SignMessage

logger = logging.getLogger(__name__)

PAYMENT_REQUIRED = 402

DEFAULT_HEADERS = {"Accept": "application/json, text/plain, */*"}

ROUTE_OUTCOMES = Counter(
    "session_route_outcomes_total",
    "Terminal states reached by routed outbound calls",
    ["state"],
)


class RouteState(str, Enum):
    DONE_NO_PAY = "done_no_pay"
    DONE_PAID = "done_paid"
    DONE_NEW_SESSION = "done_new_session"
    FAILED = "failed"


@dataclass(frozen=True)
class PaymentProof:
    """What the payment client reported about the payment it made."""

    amount: int
    tx_hash: str
    recipient: str
    token: str
    network: str

    @classmethod
    def from_log(cls, log: PaymentLog) -> "PaymentProof":
        return cls(
            amount=log.amount,
            tx_hash=log.tx_hash,
            recipient=log.recipient,
            token=log.token or ZERO_ADDRESS,
            network=log.network,
        )


@dataclass(frozen=True)
class RouteOutcome:
    """Terminal result of one routed call.

    ``session`` is the session that was used (``done_no_pay``) or minted
    (``done_new_session``). ``payment`` is None on ``done_paid`` when the
    resource turned out to be free.
    """

    state: RouteState
    response: Optional[HttpResult] = None
    session: Optional[SessionRecord] = None
    payment: Optional[PaymentProof] = None
    session_rejected: bool = False
    error: Optional[SessionError] = None

    @property
    def ok(self) -> bool:
        return self.state != RouteState.FAILED


def merge_headers(*layers: Optional[dict[str, str]]) -> dict[str, str]:
    """Merge header dicts left to right; later layers win, names compare case-insensitively."""
    merged: dict[str, str] = {}
    names: dict[str, str] = {}
    for layer in layers:
        for name, value in (layer or {}).items():
            previous = names.get(name.lower())
            if previous is not None:
                del merged[previous]
            names[name.lower()] = name
            merged[name] = value
    return merged


class SessionRouter:
    """Decides, per outbound call, whether a session credential or a payment authorizes it."""

    def __init__(
        self,
        store: SessionStore,
        transport: HttpTransportProtocol,
        payment_client_factory: PaymentClientFactory,
        wallet_address: str,
        sign_message: SignMessage,
    ):
        self.store = store
        self.transport = transport
        self.payment_client_factory = payment_client_factory
        self.wallet_address = wallet_address
        self.sign_message = sign_message

    def build_request(
        self,
        method: str = "GET",
        headers: Optional[dict[str, str]] = None,
        body: Optional[str] = None,
        timeout_ms: int = 30000,
        session: Optional[SessionRecord] = None,
    ) -> OutboundRequest:
        """Defaults, then session headers, then caller headers (highest precedence)."""
        session_headers = build_session_headers(session) if session else None
        merged = merge_headers(DEFAULT_HEADERS, session_headers, headers)
        if body and method in BODY_METHODS:
            if not any(name.lower() == "content-type" for name in merged):
                merged["Content-Type"] = "application/json"
        return OutboundRequest(
            method=method, headers=merged, body=body, timeout_ms=timeout_ms
        )

    async def route(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: Optional[dict[str, str]] = None,
        body: Optional[str] = None,
        timeout_ms: int = 30000,
        max_payment_wei: Optional[int] = None,
        skip_session_check: bool = False,
    ) -> RouteOutcome:
        rejected = False
        try:
            if not skip_session_check:
                record = self.store.find_by_url(url)
                if record is not None:
                    request = self.build_request(
                        method, headers, body, timeout_ms, session=record
                    )
                    resp = await self.transport.send(url, request)
                    if resp.status_code != PAYMENT_REQUIRED:
                        self.store.record_use(record.session_id)
                        used = self.store.lookup(record.session_id).record or record
                        return self._finish(
                            RouteOutcome(
                                RouteState.DONE_NO_PAY, response=resp, session=used
                            )
                        )
                    logger.warning(
                        "Session %s rejected by server for %s; falling back to payment",
                        record.session_id,
                        url,
                    )
                    rejected = True

            request = self.build_request(method, headers, body, timeout_ms)
            resp, payment = await self.pay(url, request, max_payment_wei)
            self._require_settled(url, resp, payment)
            return self._finish(
                RouteOutcome(
                    RouteState.DONE_PAID,
                    response=resp,
                    payment=payment,
                    session_rejected=rejected,
                )
            )
        except SessionError as e:
            return self._finish(
                RouteOutcome(RouteState.FAILED, session_rejected=rejected, error=e)
            )

    async def establish_session(
        self,
        endpoint: str,
        *,
        scope: SessionScope = "prefix",
        ttl_seconds: Optional[int] = None,
        label: Optional[str] = None,
        method: str = "GET",
        headers: Optional[dict[str, str]] = None,
        body: Optional[str] = None,
        timeout_ms: int = 30000,
        max_payment_wei: Optional[int] = None,
    ) -> RouteOutcome:
        """Pay once against ``endpoint`` and mint a session from the payment proof.

        A free endpoint ends in ``done_paid`` with no payment and no session;
        a 402 that was not paid ends in ``failed``. Signer failures propagate.
        """
        try:
            request = self.build_request(method, headers, body, timeout_ms)
            resp, payment = await self.pay(endpoint, request, max_payment_wei)
            self._require_settled(endpoint, resp, payment)
        except SessionError as e:
            return self._finish(RouteOutcome(RouteState.FAILED, error=e))

        if payment is None:
            return self._finish(RouteOutcome(RouteState.DONE_PAID, response=resp))

        record = await self.store.create(
            CreateSessionOptions(
                endpoint=endpoint,
                scope=scope,
                ttl_seconds=ttl_seconds,
                label=label,
                payment_tx_hash=payment.tx_hash,
                payment_amount=payment.amount,
                payment_token=payment.token,
                payment_recipient=payment.recipient,
                wallet_address=self.wallet_address,
            ),
            self.sign_message,
        )
        return self._finish(
            RouteOutcome(
                RouteState.DONE_NEW_SESSION,
                response=resp,
                session=record,
                payment=payment,
            )
        )

    async def pay(
        self,
        url: str,
        request: OutboundRequest,
        max_payment_wei: Optional[int] = None,
    ) -> tuple[HttpResult, Optional[PaymentProof]]:
        """Run one call through the payment client and capture what it paid."""
        captured: list[PaymentLog] = []

        def before_payment(quote: PaymentQuote, target: str) -> bool:
            if max_payment_wei is not None and quote.amount > max_payment_wei:
                logger.warning(
                    "Payment of %d wei for %s exceeds cap of %d wei",
                    quote.amount,
                    target,
                    max_payment_wei,
                )
                raise PaymentCapExceededError(quote.amount, max_payment_wei)
            return True

        def payment_complete(log: PaymentLog) -> None:
            logger.info(
                "Payment captured: tx=%s amount=%d recipient=%s",
                log.tx_hash,
                log.amount,
                log.recipient,
            )
            captured.append(log)

        options = PaymentClientOptions(
            per_request_max=max_payment_wei,
            on_before_payment=before_payment,
            on_payment_complete=payment_complete,
        )
        async with self.payment_client_factory(options) as client:
            resp = await client.fetch(url, request)
        payment = PaymentProof.from_log(captured[-1]) if captured else None
        return resp, payment

    def _require_settled(
        self, url: str, resp: HttpResult, payment: Optional[PaymentProof]
    ) -> None:
        """A 402 that nothing was paid for is a failure, never a free resource."""
        if resp.status_code == PAYMENT_REQUIRED and payment is None:
            raise PaymentRequiredError(url, "no payment was made")

    def _finish(self, outcome: RouteOutcome) -> RouteOutcome:
        ROUTE_OUTCOMES.labels(state=outcome.state.value).inc()
        return outcome
