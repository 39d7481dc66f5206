"""In-process key-value store with per-entry expiry and LRU eviction.

Expired entries are never returned; they are dropped when read or when
eviction reaches them. The store holds at most max_entries keys, evicting
the least recently used first.
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class MemoryStore:
    """Bounded in-memory KeyValueStore.

    Safe for concurrent asyncio tasks: every operation completes without
    awaiting, so no task observes a half-applied update.
    """

    def __init__(
        self,
        max_entries: int = 10_000,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the store.

        Args:
            max_entries: Upper bound on stored keys (<= 0 means unbounded).
            clock: Monotonic time source in seconds (injectable for tests).
        """
        self._entries: OrderedDict[str, tuple[Any, float | None]] = OrderedDict()
        self._max_entries = max_entries
        self._clock = clock

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= self._clock():
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        expires_at = self._clock() + ttl if ttl else None
        self._entries[key] = (value, expires_at)
        self._entries.move_to_end(key)
        self._evict()
        return True

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def _evict(self) -> None:
        if self._max_entries <= 0:
            return
        while len(self._entries) > self._max_entries:
            key, _ = self._entries.popitem(last=False)
            logger.debug("Store EVICT: %s", key.split(":", 1)[0])
