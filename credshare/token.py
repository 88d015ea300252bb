"""
Credshare Token Codec.

A share token is the URL-safe base64 encoding of::

    {"payload": {"action": "share_access", "credentialId": ..., "nonce": ...,
                 "maxViews": ..., "timestamp": ...},
     "signature": "0x..."}

The signature covers the payload's canonical serialization: compact JSON with
the keys in the fixed order above and non-ASCII text emitted verbatim. That is
byte-for-byte what ``JSON.stringify`` yields in the browser wallet that signs
the link, so tokens issued there verify here and vice versa.
"""

import base64
import binascii
import json
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional

from credshare.config import MAX_TOKEN_LENGTH, get_share_url
from credshare.errors import DecodeError, PayloadError
from credshare.signer import Signer

logger = logging.getLogger(__name__)

SHARE_ACTION = "share_access"

# Canonical field order; also the complete set of allowed fields
PAYLOAD_FIELDS = ("action", "credentialId", "nonce", "maxViews", "timestamp")
TOKEN_FIELDS = ("payload", "signature")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class SharePayload:
    """
    The signed claim carried by a share link.

    Attributes:
        credential_id: Identifier of the shared credential.
        nonce: Unique per token; scopes its view counter.
        max_views: Number of successful redemptions allowed (>= 1).
        timestamp: Creation time in epoch milliseconds. Advisory only.
        action: Claim tag, always "share_access".
    """

    credential_id: str
    nonce: str
    max_views: int
    timestamp: int
    action: str = SHARE_ACTION

    def __post_init__(self):
        if self.action != SHARE_ACTION:
            raise PayloadError(f"Unexpected action: {self.action!r}")
        for name in ("credential_id", "nonce"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise PayloadError(f"Payload field '{name}' must be a non-empty string")
            try:
                value.encode("utf-8")
            except UnicodeEncodeError:
                raise PayloadError(f"Payload field '{name}' is not valid UTF-8 text")
        if not _is_int(self.max_views) or self.max_views < 1:
            raise PayloadError("Payload field 'maxViews' must be a positive integer")
        if not _is_int(self.timestamp) or self.timestamp < 0:
            raise PayloadError("Payload field 'timestamp' must be a non-negative integer")

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation, keys in canonical order."""
        return {
            "action": self.action,
            "credentialId": self.credential_id,
            "nonce": self.nonce,
            "maxViews": self.max_views,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "SharePayload":
        """
        Build a payload from its decoded wire form.

        Raises:
            PayloadError: If fields are missing, unknown or invalid.
        """
        if not isinstance(data, dict):
            raise PayloadError("Payload must be a JSON object")

        missing = [name for name in PAYLOAD_FIELDS if name not in data]
        if missing:
            raise PayloadError(f"Payload missing fields: {', '.join(missing)}")
        unknown = sorted(set(data) - set(PAYLOAD_FIELDS))
        if unknown:
            raise PayloadError(f"Payload has unknown fields: {', '.join(unknown)}")

        return cls(
            action=data["action"],
            credential_id=data["credentialId"],
            nonce=data["nonce"],
            max_views=data["maxViews"],
            timestamp=data["timestamp"],
        )

    def canonical_bytes(self) -> bytes:
        """The exact bytes a share signature is computed over."""
        return json.dumps(
            self.to_dict(), separators=(",", ":"), ensure_ascii=False
        ).encode("utf-8")


@dataclass(frozen=True)
class ShareToken:
    """A payload together with the owner's signature over it."""

    payload: SharePayload
    signature: str

    def encode(self) -> str:
        return encode_token(self.payload, self.signature)

    def share_url(self, base_url: Optional[str] = None) -> str:
        return build_share_url(self.encode(), base_url)


def encode_token(payload: SharePayload, signature: str) -> str:
    """
    Serialize a payload and signature into an opaque URL-safe string.

    Args:
        payload: The signed claim.
        signature: Hex signature over ``payload.canonical_bytes()``.

    Returns:
        Unpadded URL-safe base64 text.
    """
    document = {"payload": payload.to_dict(), "signature": signature}
    raw = json.dumps(document, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _b64decode(token: str) -> bytes:
    """Decode standard or URL-safe base64, padded or not."""
    # '+' arrives as ' ' after query-string decoding of a standard-alphabet link
    text = token.strip().replace(" ", "+").replace("-", "+").replace("_", "/")
    text += "=" * (-len(text) % 4)
    return base64.b64decode(text, validate=True)


def decode_token(token: str) -> ShareToken:
    """
    Parse an encoded share token and validate its structure.

    Raises:
        DecodeError: If the text is too long or is not base64-encoded JSON.
        PayloadError: If the JSON does not have the share token shape.
    """
    if not isinstance(token, str) or not token.strip():
        raise PayloadError("Missing access token")

    if len(token) > MAX_TOKEN_LENGTH:
        logger.debug(f"Token rejected: {len(token)} characters")
        raise DecodeError()

    try:
        document = json.loads(_b64decode(token).decode("utf-8"))
    except (binascii.Error, ValueError, RecursionError) as e:
        logger.debug(f"Token decode failed: {e}")
        raise DecodeError() from e

    if not isinstance(document, dict):
        raise PayloadError()

    missing = [name for name in TOKEN_FIELDS if name not in document]
    unknown = sorted(set(document) - set(TOKEN_FIELDS))
    if missing or unknown:
        raise PayloadError()

    signature = document["signature"]
    if not isinstance(signature, str) or not signature:
        raise PayloadError()

    return ShareToken(payload=SharePayload.from_dict(document["payload"]), signature=signature)


def build_share_url(token: str, base_url: Optional[str] = None) -> str:
    """Embed an encoded token in a link to the secure viewer."""
    if base_url is None:
        return get_share_url(token)
    return get_share_url(token, base_url=base_url)


def issue_share_token(
    signer: Signer,
    credential_id: str,
    max_views: int = 1,
    nonce: Optional[str] = None,
    timestamp: Optional[int] = None,
) -> ShareToken:
    """
    Create and sign a share token for one of the signer's credentials.

    Args:
        signer: The owning identity.
        credential_id: Credential to grant access to.
        max_views: Number of successful views the link allows.
        nonce: Token nonce (default: a random UUID4).
        timestamp: Creation time in epoch ms (default: now).

    Returns:
        The signed ShareToken.

    Example:
        >>> token = issue_share_token(signer, "1", max_views=3)
        >>> url = token.share_url()
    """
    payload = SharePayload(
        credential_id=credential_id,
        nonce=nonce or str(uuid.uuid4()),
        max_views=max_views,
        timestamp=timestamp if timestamp is not None else int(time.time() * 1000),
    )
    return ShareToken(payload=payload, signature=signer.sign(payload.canonical_bytes()))
