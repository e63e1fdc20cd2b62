"""Session domain entities: SessionRecord, SessionTokenPayload and lookup results."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

SessionScope = Literal["prefix", "exact"]

SESSION_PROTOCOL_VERSION = "x402session/1.1"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

SESSION_TOKEN_HEADER = "X-Session-Token"
SESSION_WALLET_HEADER = "X-Session-Wallet"
PAYMENT_SESSION_HEADER = "PAYMENT-SESSION"


def covers_url(endpoint: str, scope: SessionScope, url: str) -> bool:
    """Return whether ``url`` falls inside a session established for ``endpoint``.

    ``exact`` scope requires a byte-identical URL. ``prefix`` scope accepts the
    endpoint itself, anything below it on a path boundary, and the endpoint
    followed by a query string. ``/v1`` covers ``/v1/users`` but not ``/v10``.
    """
    if scope == "exact":
        return url == endpoint
    base = endpoint if endpoint.endswith("/") else endpoint + "/"
    return url == endpoint or url.startswith(base) or url.startswith(endpoint + "?")


class SessionTokenPayload(BaseModel):
    """Canonical claim signed by the agent wallet.

    Field names are camelCase on the wire so third-party verifiers rebuild the
    exact same bytes.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    version: str = SESSION_PROTOCOL_VERSION
    session_id: str
    wallet_address: str
    endpoint: str
    scope: SessionScope
    created_at: int
    expires_at: int
    payment_tx_hash: str
    payment_amount: str

    @field_validator("payment_amount")
    @classmethod
    def validate_payment_amount(cls, v: str) -> str:
        if not (v.isascii() and v.isdigit()):
            raise ValueError("paymentAmount must be a non-negative decimal string")
        return v


class SessionRecord(BaseModel):
    """One paid access grant.

    Only ``call_count``, ``last_used_at`` and ``expires_at`` (forced to 0 on
    termination) change after creation.
    """

    session_id: str = Field(..., frozen=True)
    endpoint: str = Field(..., frozen=True)
    scope: SessionScope = Field(..., frozen=True)
    wallet_address: str = Field(..., frozen=True)
    created_at: int = Field(..., frozen=True)
    expires_at: int
    payment_tx_hash: str = Field(..., frozen=True)
    payment_amount: int = Field(..., ge=0, frozen=True)
    payment_token: str = Field(ZERO_ADDRESS, frozen=True)
    payment_recipient: str = Field(..., frozen=True)
    session_token: str = Field(..., frozen=True)
    signature: str = Field(..., frozen=True)
    label: Optional[str] = Field(None, frozen=True)
    call_count: int = 0
    last_used_at: int = 0

    @field_serializer("payment_amount")
    def serialize_payment_amount(self, value: int) -> str:
        return str(value)

    def is_active(self, now: int) -> bool:
        return now < self.expires_at

    def covers(self, url: str) -> bool:
        return covers_url(self.endpoint, self.scope, url)


class CreateSessionOptions(BaseModel):
    """Inputs for minting a session out of a confirmed payment."""

    endpoint: str
    scope: SessionScope = "prefix"
    ttl_seconds: Optional[int] = None
    label: Optional[str] = None
    payment_tx_hash: str
    payment_amount: int = Field(..., ge=0)
    payment_token: str = ZERO_ADDRESS
    payment_recipient: str
    wallet_address: str


@dataclass(frozen=True)
class SessionLookup:
    """Result of a pure read by session id; ``expired`` is relative to lookup time.

    ``ended_at`` is set once the session was ended explicitly.
    """

    found: bool
    record: Optional[SessionRecord] = None
    expired: bool = False
    ended_at: Optional[int] = None


def build_session_headers(record: SessionRecord) -> dict[str, str]:
    """Headers that present a session credential to a remote server."""
    return {
        SESSION_TOKEN_HEADER: record.session_token,
        SESSION_WALLET_HEADER: record.wallet_address,
        PAYMENT_SESSION_HEADER: record.session_id,
    }
