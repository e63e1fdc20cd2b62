"""Test implementation of PaymentClientProtocol for unit testing."""

from __future__ import annotations

import time
from typing import Optional, Type
from types import TracebackType

from x402session.domain.shared import (
    HttpResult,
    HttpTransportProtocol,
    OutboundRequest,
    PaymentClientOptions,
    PaymentLog,
    PaymentQuote,
)

from .remote_server import RECIPIENT


class TestPaymentClient:
    """Scripted payment client.

    Sends through the given transport. On a 402 it "pays" the configured
    quote without any wallet, then retries with a dummy proof header. With
    ``pays`` off it hands the 402 back unpaid. Every call and every options
    object it was built with is recorded.
    """

    __test__ = False

    def __init__(
        self,
        transport: HttpTransportProtocol,
        amount: int = 1000,
        recipient: str = RECIPIENT,
        token: Optional[str] = None,
    ) -> None:
        self._transport = transport
        self.quote = PaymentQuote(
            scheme="exact",
            network="eip155:8453",
            asset=token or "",
            amount=amount,
            pay_to=recipient,
        )
        self.token = token
        self.pays = True
        self.calls: list[tuple[str, OutboundRequest]] = []
        self.options_seen: list[PaymentClientOptions] = []
        self.payments: list[PaymentLog] = []
        self.closed = 0
        self._options = PaymentClientOptions()

    def factory(self, options: PaymentClientOptions) -> "TestPaymentClient":
        self.options_seen.append(options)
        self._options = options
        return self

    async def fetch(self, url: str, request: OutboundRequest) -> HttpResult:
        self.calls.append((url, request))
        first = await self._transport.send(url, request)
        if first.status_code != 402:
            return first
        if not self.pays:
            return first
        if not self._options.on_before_payment(self.quote, url):
            return first
        log = PaymentLog(
            timestamp=int(time.time()),
            url=url,
            amount=self.quote.amount,
            token=self.token,
            recipient=self.quote.pay_to,
            tx_hash="0x" + f"{len(self.payments) + 1:064x}",
            network=self.quote.network,
        )
        self.payments.append(log)
        self._options.on_payment_complete(log)
        return await self._transport.send(
            url, request.with_headers({"X-PAYMENT": "dGVzdC1wcm9vZg=="})
        )

    async def aclose(self) -> None:
        self.closed += 1

    async def __aenter__(self) -> "TestPaymentClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()
