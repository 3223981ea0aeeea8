"""In-process cache tier with per-entry TTL."""

import math
import time
from typing import Any, Callable

from app.application.interfaces.cache import CacheTier


class MemoryCacheTier(CacheTier):
    """
    Expired entries are dropped when read, and swept in bulk on the first
    write after the earliest known expiry.
    """

    name = "memory"

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._entries: dict[str, tuple[Any, float]] = {}
        self._clock = clock
        self._next_expiry = math.inf

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            self._entries.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        now = self._clock()
        if now >= self._next_expiry:
            self._sweep(now)
        expires_at = now + ttl_seconds
        self._entries[key] = (value, expires_at)
        self._next_expiry = min(self._next_expiry, expires_at)

    def _sweep(self, now: float) -> None:
        self._entries = {k: entry for k, entry in self._entries.items() if entry[1] > now}
        self._next_expiry = min((entry[1] for entry in self._entries.values()), default=math.inf)
