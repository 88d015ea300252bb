"""
Credshare error taxonomy.

Every failure of a redemption is terminal and surfaces to the caller as one
of these exceptions. Each carries the HTTP status and a stable machine code
so the server can map it to a response without inspecting messages.
"""

from typing import Any, Dict


class ShareAccessError(Exception):
    """Base class for all share-link redemption failures."""

    status_code: int = 500
    code: str = "share_access_error"
    default_message: str = "Share access failed"

    def __init__(self, message: str = ""):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Response body for this error."""
        return {"error": self.message}


class DecodeError(ShareAccessError):
    """The token string is not a valid encoding."""

    status_code = 400
    code = "decode_error"
    default_message = "Invalid token format"


class PayloadError(ShareAccessError):
    """The decoded token is structurally or semantically invalid."""

    status_code = 400
    code = "payload_error"
    default_message = "Invalid payload structure"


class SignatureError(ShareAccessError):
    """The signature cannot be parsed or no signer can be recovered from it."""

    status_code = 401
    code = "signature_error"
    default_message = "Invalid signature"


class RateLimitExceeded(ShareAccessError):
    """The token's view cap has been reached."""

    status_code = 403
    code = "rate_limit_exceeded"
    default_message = "Access Link Expired: Max views reached."


class NotFoundError(ShareAccessError):
    """
    No credential with the requested id is owned by the recovered signer.

    Raised identically for a wrong id, an address owning nothing, or a token
    signed by someone other than the owner.
    """

    status_code = 404
    code = "not_found"
    default_message = "Credential not found or does not belong to signer."


class InternalError(ShareAccessError):
    """A collaborator failed unexpectedly."""

    status_code = 500
    code = "internal_error"
    default_message = "Internal Server Validation Error"
