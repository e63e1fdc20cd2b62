"""Protocol interface for external x402 payment client implementations.

The payment client performs a request and transparently handles a
payment-required answer: it pays, then retries. This protocol is the only
thing the session router knows about it, which keeps the router testable
with scripted clients.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol, Type
from types import TracebackType

from pydantic import BaseModel, Field

from .http_transport_protocol import HttpResult, OutboundRequest


class PaymentQuote(BaseModel):
    """One accepted way of paying, as quoted by a 402 response."""

    scheme: str = "exact"
    network: str
    asset: str
    amount: int = Field(..., ge=0, description="Amount in base units")
    pay_to: str
    resource: Optional[str] = None
    max_timeout_seconds: int = 60
    extra: dict[str, Any] = Field(default_factory=dict)


class PaymentLog(BaseModel):
    """Proof of a completed payment, reported by the payment client."""

    timestamp: int
    url: str
    amount: int = Field(..., ge=0)
    token: Optional[str] = None
    recipient: str
    tx_hash: str
    network: str
    scheme: str = "exact"
    success: bool = True


# Return False to decline quietly, raise to abort the call.
BeforePaymentHook = Callable[[PaymentQuote, str], bool]
PaymentCompleteHook = Callable[[PaymentLog], None]


def _allow_payment(quote: PaymentQuote, url: str) -> bool:
    return True


def _ignore_payment(log: PaymentLog) -> None:
    return None


@dataclass(frozen=True)
class PaymentClientOptions:
    """Per-call configuration for a payment client."""

    per_request_max: Optional[int] = None
    on_before_payment: BeforePaymentHook = field(default=_allow_payment)
    on_payment_complete: PaymentCompleteHook = field(default=_ignore_payment)


class PaymentClientProtocol(Protocol):
    """Protocol defining the interface for payment client implementations."""

    async def fetch(self, url: str, request: OutboundRequest) -> HttpResult:
        """Perform the request, paying once if the server demands it.

        Args:
            url: Target URL
            request: Method, headers, body and timeout

        Returns:
            The final response (after payment, when one was made)

        Raises:
            PaymentCapExceededError: If the quote exceeds the per-request maximum
                or ``on_before_payment`` rejects it by raising.
            RequestTimeoutError: If a request exceeds its timeout.
            TransportError: On network-level failures.
        """
        ...

    async def aclose(self) -> None:
        ...

    async def __aenter__(self: "PaymentClientProtocol") -> "PaymentClientProtocol":
        ...

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        ...


# Factory type for creating payment clients bound to one call's options
PaymentClientFactory = Callable[[PaymentClientOptions], PaymentClientProtocol]
