"""
Credshare Signer - signs share payloads on behalf of the owning identity.

The redemption server never signs anything; it only recovers signers. Signing
happens in the owner's wallet. This module models that wallet as a ``Signer``
so the issuing CLI and the test suite can produce real tokens from local keys.
"""

from abc import ABC, abstractmethod
from typing import Optional

from eth_account import Account
from eth_account.messages import encode_defunct


class Signer(ABC):
    """An identity able to produce EIP-191 signatures over raw bytes."""

    @property
    @abstractmethod
    def address(self) -> str:
        """Checksummed address of the signing identity."""
        pass

    @abstractmethod
    def sign(self, message: bytes) -> str:
        """Sign ``message`` and return a 0x-prefixed 65-byte hex signature."""
        pass


class LocalAccountSigner(Signer):
    """
    Signs with a secp256k1 private key held in process memory.

    Produces the same signatures a browser wallet's ``personal_sign`` would
    for the same key and message.

    Example:
        >>> signer = LocalAccountSigner(private_key="0x4c0883a6...")
        >>> signature = signer.sign(payload.canonical_bytes())
    """

    def __init__(self, private_key: str):
        """
        Initialize the Signer with a private key.

        Args:
            private_key: Hex-encoded 32-byte secp256k1 private key.

        Raises:
            ValueError: If private_key is missing or invalid.
        """
        if not private_key:
            raise ValueError("Credshare Signer requires 'private_key' (hex string)")

        try:
            self._account = Account.from_key(private_key)
        except Exception as e:
            raise ValueError(f"Invalid private key: {e}")

    @classmethod
    def generate(cls, extra_entropy: Optional[str] = None) -> "LocalAccountSigner":
        """Create a signer for a freshly generated identity."""
        account = Account.create(extra_entropy or "")
        return cls(private_key="0x" + bytes(account.key).hex())

    @property
    def address(self) -> str:
        return self._account.address

    @property
    def private_key_hex(self) -> str:
        """Hex private key (keep secret)."""
        return "0x" + bytes(self._account.key).hex()

    def sign(self, message: bytes) -> str:
        signed = self._account.sign_message(encode_defunct(primitive=message))
        return "0x" + bytes(signed.signature).hex()
