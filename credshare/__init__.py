"""
Credshare - signed, view-limited sharing links for verifiable credentials.

A credential owner signs a small claim with their wallet key and hands out a
link. Anyone holding the link can view the credential, and learn which
address owns it, until the link's view cap is used up.
"""

__version__ = "0.4.0"

# Errors
from .errors import (
    ShareAccessError,
    DecodeError,
    PayloadError,
    SignatureError,
    RateLimitExceeded,
    NotFoundError,
    InternalError,
)

# Token protocol
from .signature import recover_address, RecoverableSignature
from .signer import Signer, LocalAccountSigner
from .token import (
    SharePayload,
    ShareToken,
    encode_token,
    decode_token,
    issue_share_token,
    build_share_url,
)

# Redemption
from .gate import ViewCountGateInterface, MemoryViewCountGate, AdmitResult
from .store import (
    Credential,
    CredentialStoreInterface,
    MemoryCredentialStore,
    JsonFileCredentialStore,
)
from .resolver import CredentialResolver
from .redemption import RedemptionOrchestrator, RedemptionResult


# HTTP server (lazy import to avoid loading FastAPI for library use)
def __getattr__(name):
    """Lazy loading of the HTTP server."""
    if name in ("create_app", "app"):
        from . import server

        return getattr(server, name)
    raise AttributeError(f"module 'credshare' has no attribute '{name}'")


__all__ = [
    "__version__",
    # Errors
    "ShareAccessError",
    "DecodeError",
    "PayloadError",
    "SignatureError",
    "RateLimitExceeded",
    "NotFoundError",
    "InternalError",
    # Token protocol
    "recover_address",
    "RecoverableSignature",
    "Signer",
    "LocalAccountSigner",
    "SharePayload",
    "ShareToken",
    "encode_token",
    "decode_token",
    "issue_share_token",
    "build_share_url",
    # Redemption
    "ViewCountGateInterface",
    "MemoryViewCountGate",
    "AdmitResult",
    "Credential",
    "CredentialStoreInterface",
    "MemoryCredentialStore",
    "JsonFileCredentialStore",
    "CredentialResolver",
    "RedemptionOrchestrator",
    "RedemptionResult",
    # Server (lazy loaded)
    "create_app",
]
