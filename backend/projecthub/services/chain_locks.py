"""In-process keyed locks, one asyncio.Lock per version chain."""
import asyncio
import uuid
from contextlib import asynccontextmanager


class ChainLocks:
    """Serialises mutations of the same chain within this process.

    Entries are dropped once no task holds or waits on them, so the
    registry only grows with the number of chains being written right now.
    """

    def __init__(self):
        self._locks: dict[uuid.UUID, asyncio.Lock] = {}
        self._users: dict[uuid.UUID, int] = {}

    @asynccontextmanager
    async def hold(self, root_id: uuid.UUID):
        lock = self._locks.setdefault(root_id, asyncio.Lock())
        self._users[root_id] = self._users.get(root_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[root_id] -= 1
            if self._users[root_id] == 0:
                del self._users[root_id]
                del self._locks[root_id]

    def __len__(self) -> int:
        return len(self._locks)


chain_locks = ChainLocks()
