from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from typing import NewType, Optional

from pydantic import ValidationError

from ..domain.session.entities import SessionTokenPayload
from ..domain.shared.signer_protocol import SignMessage

# Stronger semantic aliases
PayloadB64Url = NewType("PayloadB64Url", str)
SessionToken = NewType("SessionToken", str)


@dataclass(frozen=True)
class DecodedSessionToken:
    """Payload and signature recovered from a session token string."""

    payload: SessionTokenPayload
    signature: str


def canonical_json(data: dict) -> str:
    """Serialize dict to canonical JSON text (sorted keys, no whitespace)."""
    return json.dumps(
        data, separators=(",", ":"), sort_keys=True, ensure_ascii=False
    )


def canonical_payload(payload: SessionTokenPayload) -> str:
    """Canonical JSON of a token payload using its camelCase wire names."""
    return canonical_json(payload.model_dump(by_alias=True))


def b64url_encode(data: bytes) -> str:
    """URL-safe base64 without padding."""
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def b64url_decode(text: str) -> bytes:
    """Decode URL-safe base64, with or without padding. Raises binascii.Error."""
    padded = text + "=" * (-len(text) % 4)
    return base64.b64decode(padded, altchars=b"-_", validate=True)


async def encode_session_token(
    payload: SessionTokenPayload, sign_message: SignMessage
) -> tuple[SessionToken, str]:
    """Sign the canonical payload and return ``(token, signature)``.

    The signer receives the canonical JSON string itself, not its base64 form,
    so a verifier that rebuilds the JSON from the decoded claims checks the
    exact same bytes.
    """
    message = canonical_payload(payload)
    signature = await sign_message(message)
    encoded = PayloadB64Url(b64url_encode(message.encode("utf-8")))
    return SessionToken(f"{encoded}.{signature}"), signature


def decode_session_token(token: str) -> Optional[DecodedSessionToken]:
    """Split a token on its last dot and parse the payload.

    Returns None for anything malformed. The result is for display only and
    carries no trust: verification belongs to the remote server.
    """
    encoded, sep, signature = token.rpartition(".")
    if not sep or not encoded:
        return None
    try:
        data = json.loads(b64url_decode(encoded).decode("utf-8"))
        payload = SessionTokenPayload.model_validate(data)
    except (binascii.Error, ValueError, ValidationError):
        return None
    return DecodedSessionToken(payload=payload, signature=signature)
