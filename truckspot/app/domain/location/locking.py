"""
Per-truck mutation locks.

Serializes read-modify-write cycles for a single truck inside this process.
Different trucks never contend; there is no global lock. Entries are
reference counted and dropped once no task holds or waits on them.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Hashable


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.users = 0


class TruckLockRegistry:
    """Keyed asyncio locks, one per truck ID."""

    def __init__(self) -> None:
        self._entries: Dict[Hashable, _Entry] = {}

    @asynccontextmanager
    async def hold(self, truck_id: Hashable) -> AsyncIterator[None]:
        entry = self._entries.get(truck_id)
        if entry is None:
            entry = self._entries[truck_id] = _Entry()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                self._entries.pop(truck_id, None)

    def is_locked(self, truck_id: Hashable) -> bool:
        entry = self._entries.get(truck_id)
        return entry is not None and entry.lock.locked()

    def __len__(self) -> int:
        return len(self._entries)


# Process-wide registry shared by every TruckLocationStore
truck_locks = TruckLockRegistry()
