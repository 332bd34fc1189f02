"""Duplicate-settlement protection for UTR submissions."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

from ..errors import DuplicateUTRError
from .stores import TransactionStore

logger = logging.getLogger(__name__)


class UTRLockRegistry:
    """Per-UTR asyncio locks for stores without atomic unique-insert.

    Locks are dropped once no task holds or waits on them, so the registry
    does not grow with the number of UTRs ever seen.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._waiters: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, utr_number: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(utr_number, asyncio.Lock())
        self._waiters[utr_number] = self._waiters.get(utr_number, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[utr_number] -= 1
            if self._waiters[utr_number] == 0:
                del self._waiters[utr_number]
                del self._locks[utr_number]


class IdempotencyGuard:
    """Rejects UTRs that are already bound to a settled transaction.

    The existence check runs before any upstream call to save gateway
    traffic. It is not the safety net: two concurrent submissions can both
    pass it, and only the transaction store's unique constraint (or the
    optional lock registry) decides which one settles.
    """

    def __init__(
        self,
        transaction_store: TransactionStore,
        lock_registry: Optional[UTRLockRegistry] = None,
    ):
        self.transaction_store = transaction_store
        self.lock_registry = lock_registry

    async def ensure_unclaimed(self, utr_number: str) -> None:
        """Raise if the UTR is already settled.

        Args:
            utr_number: Trimmed UTR.

        Raises:
            DuplicateUTRError: If a settled transaction already carries the UTR.
        """
        if await self.transaction_store.exists_by_utr(utr_number):
            logger.warning(f"UTR {utr_number} already settled")
            raise DuplicateUTRError()

    @asynccontextmanager
    async def claim(self, utr_number: str) -> AsyncIterator[None]:
        """Serialize work on one UTR when a lock registry is configured."""
        if self.lock_registry is None:
            yield
            return
        async with self.lock_registry.hold(utr_number):
            yield
