"""
Credshare Signature Primitive - recovers signer addresses from EIP-191 signatures.

Share tokens are signed in the browser with a wallet's ``personal_sign``: the
message is prefixed with ``"\\x19Ethereum Signed Message:\\n" + len(message)``,
hashed with keccak-256 and signed with a recoverable secp256k1 ECDSA
signature. Verification never needs the signer's public key: it is recovered
from the signature itself and reduced to a 20-byte account address.
"""

import logging
from dataclasses import dataclass
from typing import Union

from eth_account import Account
from eth_account.messages import encode_defunct

from credshare.errors import SignatureError

logger = logging.getLogger(__name__)

# Order of the secp256k1 group
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

SIGNATURE_LENGTH = 65


@dataclass(frozen=True)
class RecoverableSignature:
    """
    The three scalars of a recoverable ECDSA signature.

    Attributes:
        r: x-coordinate of the ephemeral point, mod n.
        s: Signature proof, in canonical low-s form.
        v: Recovery id, normalized to 27 or 28.
    """

    r: int
    s: int
    v: int

    @classmethod
    def from_bytes(cls, raw: bytes) -> "RecoverableSignature":
        """
        Parse a 65-byte ``r || s || v`` signature and validate its range.

        Raises:
            SignatureError: If the length, scalars or recovery id are invalid.
        """
        if len(raw) != SIGNATURE_LENGTH:
            raise SignatureError(
                f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(raw)}"
            )

        r = int.from_bytes(raw[0:32], "big")
        s = int.from_bytes(raw[32:64], "big")
        v = raw[64]

        if v in (0, 1):
            v += 27
        if v not in (27, 28):
            raise SignatureError(f"Invalid recovery id: {raw[64]}")
        if not 1 <= r < SECP256K1_N:
            raise SignatureError("Signature r value out of range")
        # Low-s only: (r, n - s) is a malleated copy of the same signature.
        if not 1 <= s <= SECP256K1_N // 2:
            raise SignatureError("Signature s value out of range")

        return cls(r=r, s=s, v=v)

    @classmethod
    def from_hex(cls, value: str) -> "RecoverableSignature":
        """Parse a hex signature, with or without the ``0x`` prefix."""
        text = value[2:] if value[:2].lower() == "0x" else value
        try:
            raw = bytes.fromhex(text)
        except ValueError:
            raise SignatureError("Signature is not valid hex")
        return cls.from_bytes(raw)

    def to_bytes(self) -> bytes:
        return self.r.to_bytes(32, "big") + self.s.to_bytes(32, "big") + bytes([self.v])

    def to_hex(self) -> str:
        return "0x" + self.to_bytes().hex()


SignatureLike = Union[str, bytes, RecoverableSignature]


def parse_signature(signature: SignatureLike) -> RecoverableSignature:
    """Coerce any accepted signature representation into scalars."""
    if isinstance(signature, RecoverableSignature):
        return signature
    if isinstance(signature, (bytes, bytearray)):
        return RecoverableSignature.from_bytes(bytes(signature))
    if isinstance(signature, str):
        return RecoverableSignature.from_hex(signature)
    raise SignatureError(f"Unsupported signature type: {type(signature).__name__}")


def recover_address(message: bytes, signature: SignatureLike) -> str:
    """
    Recover the address that signed ``message``.

    Args:
        message: The exact bytes that were signed (the canonical payload).
        signature: Hex string, raw 65 bytes or RecoverableSignature.

    Returns:
        The EIP-55 checksummed address of the signer.

    Raises:
        SignatureError: If the message is empty, the signature is malformed
            or out of range, or public key recovery fails.

    Example:
        >>> recover_address(payload.canonical_bytes(), token.signature)
        '0x7E5F4552091A69125d5DfCb7b8C2659029395Bdf'
    """
    if not message:
        raise SignatureError("Cannot recover signer of an empty message")

    sig = parse_signature(signature)
    signable = encode_defunct(primitive=bytes(message))

    try:
        return Account.recover_message(signable, vrs=(sig.v, sig.r, sig.s))
    except Exception as e:
        logger.debug(f"Public key recovery failed: {e}")
        raise SignatureError(f"Signature recovery failed: {e}") from e
