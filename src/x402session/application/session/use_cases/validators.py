"""Pure validation functions for the session tools.

These functions contain the checks the tools run before touching the network,
so they can be tested in isolation without a store or transport.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Optional

from ....domain.errors import (
    InvalidInputError,
    ScopeMismatchError,
    SessionExpiredError,
    SessionNotFoundError,
)
from ....domain.session.entities import SessionLookup, SessionRecord

WEI_PER_ETH = Decimal(10) ** 18


def parse_max_payment_eth(value: Optional[str]) -> Optional[int]:
    """Convert a decimal ETH string to wei. Pure function.

    Args:
        value: Decimal ETH amount such as ``"0.001"``, or None for no cap

    Returns:
        The cap in wei, or None when no cap was given.

    Raises:
        InvalidInputError: If the value does not parse or is not positive.
    """
    if value is None or value.strip() == "":
        return None
    try:
        eth = Decimal(value.strip())
    except InvalidOperation as e:
        raise InvalidInputError(f'Invalid max_payment_eth: "{value}"') from e
    if not eth.is_finite() or eth <= 0:
        raise InvalidInputError(f'Invalid max_payment_eth: "{value}"')
    wei = int((eth * WEI_PER_ETH).to_integral_value())
    if wei <= 0:
        raise InvalidInputError(
            f'max_payment_eth "{value}" is below 1 wei'
        )
    return wei


def require_active_session(lookup: SessionLookup, session_id: str) -> SessionRecord:
    """Return the record of a found, unexpired session.

    Raises:
        SessionNotFoundError: If the store has no such session.
        SessionExpiredError: If the session is past its TTL or was ended.
    """
    if not lookup.found or lookup.record is None:
        raise SessionNotFoundError(session_id)
    if lookup.expired:
        record = lookup.record
        if lookup.ended_at is not None:
            raise SessionExpiredError(
                session_id, record.endpoint, lookup.ended_at, ended=True
            )
        raise SessionExpiredError(session_id, record.endpoint, record.expires_at)
    return lookup.record


def require_url_covered(record: SessionRecord, url: str) -> None:
    """Raises ScopeMismatchError when ``url`` is outside the session's scope."""
    if not record.covers(url):
        raise ScopeMismatchError(url, record.endpoint, record.scope)
