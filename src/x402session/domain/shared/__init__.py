"""Shared domain utilities.

This package is domain-accessible and should not depend on application code.
"""

from .http_transport_protocol import (
    BODY_METHODS,
    HttpResult,
    HttpTransportProtocol,
    OutboundRequest,
)
from .payment_client_protocol import (
    PaymentClientFactory,
    PaymentClientOptions,
    PaymentClientProtocol,
    PaymentLog,
    PaymentQuote,
)
from .signer_protocol import SignMessage

__all__ = [
    "BODY_METHODS",
    "HttpResult",
    "HttpTransportProtocol",
    "OutboundRequest",
    "PaymentClientFactory",
    "PaymentClientOptions",
    "PaymentClientProtocol",
    "PaymentLog",
    "PaymentQuote",
    "SignMessage",
]
