"""Signer adapters that satisfy ``SignMessage``.

Both adapters hold their key privately and expose only an async ``__call__``
that signs the exact string handed to it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Union

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from eth_account import Account
from eth_account.messages import encode_defunct

if TYPE_CHECKING:
    from ..env import Settings


class EthMessageSigner:
    """EIP-191 personal-sign with a secp256k1 account key."""

    def __init__(self, private_key: str) -> None:
        if not private_key.startswith("0x"):
            private_key = "0x" + private_key
        self._account = Account.from_key(private_key)

    @property
    def address(self) -> str:
        """Checksummed address of the signing key."""
        return self._account.address

    async def __call__(self, message: str) -> str:
        signed = self._account.sign_message(encode_defunct(text=message))
        sig_hex = bytes(signed.signature).hex()
        return "0x" + sig_hex

    def __repr__(self) -> str:
        return f"EthMessageSigner(address={self.address})"


class EcdsaMessageSigner:
    """ECDSA/SHA-256 over the UTF-8 bytes of the message, hex DER signature."""

    def __init__(self, private_key: ec.EllipticCurvePrivateKey) -> None:
        self._private_key = private_key

    @classmethod
    def from_pem(cls, pem_str: str) -> "EcdsaMessageSigner":
        key = serialization.load_pem_private_key(pem_str.encode(), password=None)
        if not isinstance(key, ec.EllipticCurvePrivateKey):
            raise ValueError("AGENT_PRIVATE_KEY_PEM must hold an EC private key")
        return cls(key)

    @property
    def public_key(self) -> ec.EllipticCurvePublicKey:
        return self._private_key.public_key()

    async def __call__(self, message: str) -> str:
        signature_der = self._private_key.sign(
            message.encode("utf-8"), ec.ECDSA(hashes.SHA256())
        )
        return signature_der.hex()

    def __repr__(self) -> str:
        return "EcdsaMessageSigner()"


MessageSigner = Union[EthMessageSigner, EcdsaMessageSigner]


def build_signer(settings: "Settings") -> MessageSigner:
    """Build the signer selected by ``AGENT_SIGNER``."""
    if settings.agent_signer == "ecdsa":
        if not settings.agent_private_key_pem:
            raise ValueError("AGENT_PRIVATE_KEY_PEM is required when AGENT_SIGNER=ecdsa")
        return EcdsaMessageSigner.from_pem(settings.agent_private_key_pem)
    if not settings.agent_private_key:
        raise ValueError("AGENT_PRIVATE_KEY is required when AGENT_SIGNER=eth")
    return EthMessageSigner(settings.agent_private_key)
