"""x402 pay-then-retry client over the plain transport and the wallet service."""

from __future__ import annotations

import base64
import binascii
import json
import logging
import time
from typing import Any, Optional, Type
from types import TracebackType

from pydantic import ValidationError

from ...application.wallet.dtos import WalletPaymentRequestDTO
from ...domain.errors import PaymentCapExceededError, PaymentRequiredError
from ...domain.shared.http_transport_protocol import (
    HttpResult,
    HttpTransportProtocol,
    OutboundRequest,
)
from ...domain.shared.payment_client_protocol import (
    PaymentClientOptions,
    PaymentLog,
    PaymentQuote,
)
from ..wallet.wallet_client import AsyncWalletClient

logger = logging.getLogger(__name__)

PAYMENT_REQUIRED_STATUS = 402
PAYMENT_REQUIRED_HEADER = "payment-required"
PAYMENT_HEADER = "X-PAYMENT"


def _quote_from_accept(accept: dict[str, Any], resource: Optional[str]) -> PaymentQuote:
    amount = accept.get("amount", accept.get("maxAmountRequired"))
    return PaymentQuote(
        scheme=accept.get("scheme", "exact"),
        network=str(accept.get("network", "")),
        asset=accept.get("asset", ""),
        amount=int(str(amount)),
        pay_to=accept["payTo"],
        resource=accept.get("resource", resource),
        max_timeout_seconds=int(accept.get("maxTimeoutSeconds", 60)),
        extra=accept.get("extra") or {},
    )


def decode_payment_requirements(
    resp: HttpResult,
) -> Optional[tuple[int, PaymentQuote]]:
    """Extract ``(x402_version, first accepted quote)`` from a 402 response.

    Tries the v2 ``PAYMENT-REQUIRED`` header (base64 JSON) first, then a v1
    JSON body with an ``accepts`` list. Returns None when neither is usable.
    """
    data: Any = None
    header = resp.header(PAYMENT_REQUIRED_HEADER)
    if header:
        try:
            data = json.loads(base64.b64decode(header))
        except (binascii.Error, ValueError):
            logger.warning("Could not decode PAYMENT-REQUIRED header")
            data = None
    if data is None and resp.text:
        try:
            data = json.loads(resp.text)
        except ValueError:
            data = None
    if not isinstance(data, dict):
        return None

    accepts = data.get("accepts") or []
    if not accepts or not isinstance(accepts[0], dict):
        return None
    resource = data.get("resource")
    if isinstance(resource, dict):
        resource = resource.get("url")
    try:
        quote = _quote_from_accept(accepts[0], resource)
    except (KeyError, TypeError, ValueError, ValidationError):
        logger.warning("Malformed payment requirements in 402 response")
        return None
    return int(data.get("x402Version", 1)), quote


def encode_payment_header(
    x402_version: int, quote: PaymentQuote, payload: dict[str, Any]
) -> str:
    proof = {
        "x402Version": x402_version,
        "scheme": quote.scheme,
        "network": quote.network,
        "payload": payload,
    }
    raw = json.dumps(proof, separators=(",", ":"))
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


class X402PaymentClient:
    """Performs a request and, on 402, pays once through the wallet service and retries.

    The transport and wallet client are shared and outlive this object, so
    ``aclose`` leaves them open.
    """

    def __init__(
        self,
        transport: HttpTransportProtocol,
        wallet: AsyncWalletClient,
        wallet_address: str,
        chain_id: int,
        options: Optional[PaymentClientOptions] = None,
    ) -> None:
        self._transport = transport
        self._wallet = wallet
        self._wallet_address = wallet_address
        self._chain_id = chain_id
        self._options = options or PaymentClientOptions()

    async def fetch(self, url: str, request: OutboundRequest) -> HttpResult:
        first = await self._transport.send(url, request)
        if first.status_code != PAYMENT_REQUIRED_STATUS:
            return first

        decoded = decode_payment_requirements(first)
        if decoded is None:
            logger.warning("402 from %s without usable payment requirements", url)
            raise PaymentRequiredError(url, "no usable payment requirements")
        x402_version, quote = decoded

        cap = self._options.per_request_max
        if cap is not None and quote.amount > cap:
            logger.warning(
                "Payment rejected by per-request max: %d > %d (%s)",
                quote.amount,
                cap,
                url,
            )
            raise PaymentCapExceededError(quote.amount, cap)
        if not self._options.on_before_payment(quote, url):
            logger.info("Payment for %s declined before execution", url)
            return first

        receipt = await self._wallet.pay(
            WalletPaymentRequestDTO(
                wallet_address=self._wallet_address,
                chain_id=self._chain_id,
                resource_url=quote.resource or url,
                scheme=quote.scheme,
                network=quote.network,
                asset=quote.asset,
                amount=quote.amount,
                pay_to=quote.pay_to,
                max_timeout_seconds=quote.max_timeout_seconds,
                extra=quote.extra,
            )
        )
        self._options.on_payment_complete(
            PaymentLog(
                timestamp=int(time.time()),
                url=url,
                amount=receipt.amount,
                token=quote.asset or None,
                recipient=quote.pay_to,
                tx_hash=receipt.tx_hash,
                network=receipt.network or quote.network,
                scheme=quote.scheme,
            )
        )

        header = encode_payment_header(x402_version, quote, receipt.payload)
        return await self._transport.send(url, request.with_headers({PAYMENT_HEADER: header}))

    async def aclose(self) -> None:
        return None

    async def __aenter__(self) -> "X402PaymentClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()
