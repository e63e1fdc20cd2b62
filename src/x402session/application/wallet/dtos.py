"""Data Transfer Objects for the external wallet service."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field, field_serializer


class WalletPaymentRequestDTO(BaseModel):
    """Ask the wallet service to execute one quoted x402 payment."""

    wallet_address: str
    chain_id: int
    resource_url: str
    scheme: str
    network: str
    asset: str
    amount: int = Field(..., ge=0)
    pay_to: str
    max_timeout_seconds: int = 60
    extra: dict[str, Any] = Field(default_factory=dict)

    @field_serializer("amount")
    def serialize_amount(self, value: int) -> str:
        return str(value)


class WalletPaymentReceiptDTO(BaseModel):
    """What the wallet service returns once the payment is settled or authorized."""

    tx_hash: str
    network: str
    amount: int = Field(..., ge=0)
    payer: Optional[str] = None
    # Scheme payload to carry back to the resource server in X-PAYMENT
    payload: dict[str, Any] = Field(default_factory=dict)
