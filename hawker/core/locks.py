from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Hashable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field


class LockTimeoutError(Exception):
    def __init__(self, key: Hashable) -> None:
        super().__init__(f"timed out waiting for lock {key!r}")
        self.key = key


@dataclass(slots=True)
class _LockEntry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    holders: int = 0


class KeyedLocks:
    """Per-key asyncio mutexes; entries are dropped once nobody holds or waits on them."""

    def __init__(self, *, acquire_timeout: float) -> None:
        self._acquire_timeout = acquire_timeout
        self._entries: dict[Hashable, _LockEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        entry = self._entries.get(key)
        if entry is None:
            entry = _LockEntry()
            self._entries[key] = entry
        entry.holders += 1
        try:
            try:
                await asyncio.wait_for(entry.lock.acquire(), timeout=self._acquire_timeout)
            except asyncio.TimeoutError:
                raise LockTimeoutError(key) from None
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            entry.holders -= 1
            if entry.holders == 0 and self._entries.get(key) is entry:
                del self._entries[key]
