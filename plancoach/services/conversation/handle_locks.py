"""Per-key asyncio locks used to serialise work on one conversation thread."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Hashable

from plancoach.utils.logging import get_logger

LOGGER = get_logger(__name__)


class _Entry:
    __slots__ = ("lock", "holders")

    def __init__(self):
        self.lock = asyncio.Lock()
        self.holders = 0


class KeyedLocks:
    """A table of asyncio locks created on demand and dropped when unused.

    ``holders`` counts tasks holding or waiting on a key, so an entry is
    removed only after the last of them leaves.
    """

    def __init__(self):
        self._entries: Dict[Hashable, _Entry] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = _Entry()
        entry.holders += 1
        try:
            if entry.lock.locked():
                LOGGER.debug(f"Waiting for lock on {key}")
            async with entry.lock:
                yield
        finally:
            entry.holders -= 1
            if entry.holders == 0 and self._entries.get(key) is entry:
                del self._entries[key]

    def is_locked(self, key: Hashable) -> bool:
        entry = self._entries.get(key)
        return bool(entry and entry.lock.locked())

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        # An empty table is still a table
        return True
