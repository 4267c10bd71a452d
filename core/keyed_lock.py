# core/keyed_lock.py
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict


@dataclass
class _Entry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    holders: int = 0  # tasks holding or waiting on the lock


class KeyedLock:
    """
    One asyncio.Lock per key, so work for the same user runs one message at a time
    while different users proceed concurrently. Entries are dropped once nobody waits.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, _Entry] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        k = str(key)
        entry = self._entries.get(k)
        if entry is None:
            entry = _Entry()
            self._entries[k] = entry
        entry.holders += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.holders -= 1
            if entry.holders == 0 and self._entries.get(k) is entry:
                del self._entries[k]

    def __len__(self) -> int:
        return len(self._entries)
