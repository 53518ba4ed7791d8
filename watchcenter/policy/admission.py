"""
Per-rule admission locks for Disaster Watch alerting.

Cooldown and quota are decided by reading the ledger and enforced by
writing to it. Holding a rule's lock across "check" and "insert pending
rows" makes that pair atomic for every caller in this process.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class AdmissionLocks:
    """규칙 ID별 asyncio.Lock 레지스트리"""

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._holders: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """
        키에 해당하는 락을 획득합니다.

        대기자가 모두 빠지면 락을 레지스트리에서 제거합니다.

        Args:
            key: 규칙 ID
        """
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if self._holders[key] == 0:
                del self._holders[key]
                self._locks.pop(key, None)

    def __len__(self) -> int:
        return len(self._locks)
