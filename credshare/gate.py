"""
Credshare View-Count Gate.

Admission control for share links: each token nonce may be redeemed at most
``maxViews`` times. The check and the increment happen as one indivisible
step per nonce, so concurrent redemptions of the same link can never admit
more views than the link allows.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List

from credshare.errors import RateLimitExceeded

logger = logging.getLogger(__name__)


@dataclass
class AdmitResult:
    """Outcome of an admitted redemption."""

    nonce: str
    view_count: int
    views_left: int


class ViewCountGateInterface(ABC):
    """Abstract interface for view-count gate implementations."""

    @abstractmethod
    async def try_admit(self, nonce: str, max_views: int) -> AdmitResult:
        """
        Consume one view of ``nonce`` if any remain.

        Args:
            nonce: The token nonce.
            max_views: The token's view cap.

        Returns:
            AdmitResult with the updated count and views left.

        Raises:
            RateLimitExceeded: If ``max_views`` views were already consumed.
        """
        pass

    @abstractmethod
    async def view_count(self, nonce: str) -> int:
        """Views consumed so far for ``nonce`` (0 if never seen)."""
        pass


class MemoryViewCountGate(ViewCountGateInterface):
    """
    In-memory view-count gate with striped locking.

    Counters live in a plain dict guarded by a fixed pool of locks; a nonce
    always maps to the same stripe, so redemptions of one link are serialized
    while redemptions of unrelated links almost never contend. Threading locks
    are used so the gate is also safe when driven from worker threads; the
    critical section never awaits.

    Counters are never evicted. State is lost on restart and is not shared
    between processes.

    Example:
        >>> gate = MemoryViewCountGate()
        >>> result = await gate.try_admit(payload.nonce, payload.max_views)
        >>> result.views_left
        2
    """

    def __init__(self, stripes: int = 64):
        """
        Initialize the gate.

        Args:
            stripes: Number of independent locks.
        """
        if stripes < 1:
            raise ValueError("stripes must be >= 1")
        self._counts: Dict[str, int] = {}
        self._locks: List[threading.Lock] = [threading.Lock() for _ in range(stripes)]
        self._stats_lock = threading.Lock()
        self._stats = {"admitted": 0, "rejected": 0}

    def _lock_for(self, nonce: str) -> threading.Lock:
        return self._locks[hash(nonce) % len(self._locks)]

    async def try_admit(self, nonce: str, max_views: int) -> AdmitResult:
        """Atomically check the cap and record one view."""
        with self._lock_for(nonce):
            current = self._counts.get(nonce, 0)
            admitted = current < max_views
            if admitted:
                current += 1
                self._counts[nonce] = current

        with self._stats_lock:
            self._stats["admitted" if admitted else "rejected"] += 1

        if not admitted:
            logger.warning(f"View cap reached for nonce={nonce} (max_views={max_views})")
            raise RateLimitExceeded()

        return AdmitResult(nonce=nonce, view_count=current, views_left=max_views - current)

    async def view_count(self, nonce: str) -> int:
        with self._lock_for(nonce):
            return self._counts.get(nonce, 0)

    @property
    def stats(self) -> dict:
        """Return admission statistics."""
        with self._stats_lock:
            return {**self._stats, "tracked": len(self._counts), "stripes": len(self._locks)}
