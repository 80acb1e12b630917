"""Per-account mutual exclusion for balance read-modify-write sequences"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class AccountLocks:
    """
    One asyncio.Lock per account id, shared by the scheduler and payment requests.

    A lock lives only while some caller holds or waits on it, so ids that were
    touched once (including unknown ones) do not accumulate.
    """

    def __init__(self) -> None:
        self._locks: Dict[int, asyncio.Lock] = {}
        self._users: Dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, account_id: int) -> AsyncIterator[None]:
        lock = self._locks.get(account_id)
        if lock is None:
            lock = self._locks[account_id] = asyncio.Lock()
        self._users[account_id] = self._users.get(account_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[account_id] -= 1
            if self._users[account_id] == 0:
                del self._users[account_id]
                del self._locks[account_id]
