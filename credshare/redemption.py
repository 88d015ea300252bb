"""
Credshare Redemption Orchestrator.

Redeems a share token in one pass:

    received -> decoded -> signature verified -> admitted -> resolved -> responded

Any step may reject the request with a ShareAccessError; nothing is retried
and nothing is rolled back. In particular a view admitted by the gate stays
consumed even if credential resolution then fails.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from credshare.errors import InternalError, PayloadError, ShareAccessError
from credshare.gate import MemoryViewCountGate, ViewCountGateInterface
from credshare.resolver import CredentialResolver
from credshare.signature import recover_address
from credshare.store import Credential
from credshare.token import decode_token

logger = logging.getLogger(__name__)


@dataclass
class RedemptionResult:
    """A successful redemption."""

    credential: Credential
    views_left: int
    owner_address: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": True,
            "credential": self.credential.to_dict(),
            "viewsLeft": self.views_left,
            "ownerAddress": self.owner_address,
        }


class RedemptionOrchestrator:
    """
    Composes the token codec, signature recovery, view-count gate and
    credential resolver into the redemption flow.

    The orchestrator holds no redemption state of its own; all view counting
    is delegated to the gate.

    Example:
        >>> orchestrator = RedemptionOrchestrator(
        ...     resolver=CredentialResolver(MemoryCredentialStore()),
        ...     gate=MemoryViewCountGate(),
        ... )
        >>> result = await orchestrator.redeem(token)
        >>> result.views_left
        0
    """

    def __init__(
        self,
        resolver: CredentialResolver,
        gate: Optional[ViewCountGateInterface] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            resolver: Credential resolver bound to the credential store.
            gate: View-count gate (default: a fresh MemoryViewCountGate).
        """
        self._resolver = resolver
        self._gate = gate or MemoryViewCountGate()

        # Stats
        self._stats = {
            "redemptions": 0,
            "successes": 0,
            "failures": 0,
        }

    @property
    def gate(self) -> ViewCountGateInterface:
        return self._gate

    @property
    def resolver(self) -> CredentialResolver:
        return self._resolver

    @property
    def stats(self) -> dict:
        return dict(self._stats)

    async def redeem(self, token: Optional[str]) -> RedemptionResult:
        """
        Redeem a share token.

        Args:
            token: The encoded share token from the link.

        Returns:
            RedemptionResult with the credential, views left and owner.

        Raises:
            PayloadError: Missing token or invalid payload.
            DecodeError: Token is not a valid encoding.
            SignatureError: No signer can be recovered.
            RateLimitExceeded: The link has no views left.
            NotFoundError: The signer owns no such credential.
            InternalError: A collaborator failed unexpectedly.
        """
        self._stats["redemptions"] += 1
        try:
            result = await self._redeem(token)
        except ShareAccessError as e:
            self._stats["failures"] += 1
            logger.warning(f"Redemption rejected ({e.code}): {e.message}")
            raise
        except Exception as e:
            self._stats["failures"] += 1
            logger.error(f"Redemption failed unexpectedly: {e}")
            raise InternalError() from e

        self._stats["successes"] += 1
        logger.info(
            f"Redeemed credential {result.credential.id} for {result.owner_address} "
            f"({result.views_left} views left)"
        )
        return result

    async def _redeem(self, token: Optional[str]) -> RedemptionResult:
        if not token:
            raise PayloadError("Missing access token")

        share = decode_token(token)
        payload = share.payload

        owner = recover_address(payload.canonical_bytes(), share.signature)

        admitted = await self._gate.try_admit(payload.nonce, payload.max_views)

        credential = await self._resolver.resolve_owned_credential(owner, payload.credential_id)

        return RedemptionResult(
            credential=credential,
            views_left=admitted.views_left,
            owner_address=owner,
        )
