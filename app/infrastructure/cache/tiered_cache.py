"""
Read-through cache over an ordered list of tiers.

Reads try each tier in order and return the first hit; a tier that fails is
skipped. Writes go to every tier, so the in-process tier still holds values
written before a distributed-tier outage. A cache outage never reaches callers.
"""

import logging
from typing import Any, Sequence

from app.application.interfaces.cache import CacheTier, CacheTierUnavailable
from app.config import Settings
from app.infrastructure.cache.memory_tier import MemoryCacheTier
from app.infrastructure.cache.redis_tier import RedisCacheTier

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60 * 30


class TieredCache:
    def __init__(self, tiers: Sequence[CacheTier], default_ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        if not tiers:
            raise ValueError("TieredCache requires at least one tier")
        self._tiers = list(tiers)
        self._default_ttl = default_ttl_seconds

    @property
    def default_ttl_seconds(self) -> int:
        return self._default_ttl

    async def get(self, key: str) -> Any | None:
        for tier in self._tiers:
            try:
                value = await tier.get(key)
            except CacheTierUnavailable as exc:
                logger.warning(
                    "Cache tier get error, falling back",
                    extra={"cache_tier": tier.name, "cache_key": key, "error": str(exc)},
                )
                continue
            if value is not None:
                return value
        return None

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl
        for tier in self._tiers:
            try:
                await tier.set(key, value, ttl)
            except CacheTierUnavailable as exc:
                logger.warning(
                    "Cache tier set error, falling back",
                    extra={"cache_tier": tier.name, "cache_key": key, "error": str(exc)},
                )

    async def close(self) -> None:
        for tier in self._tiers:
            try:
                await tier.close()
            except CacheTierUnavailable as exc:
                logger.warning("Cache tier close error", extra={"cache_tier": tier.name, "error": str(exc)})


def build_tiered_cache(settings: Settings) -> TieredCache:
    tiers: list[CacheTier] = []
    if settings.redis_url:
        tiers.append(RedisCacheTier.from_url(settings.redis_url))
    tiers.append(MemoryCacheTier())
    return TieredCache(tiers=tiers, default_ttl_seconds=settings.etg_cache_ttl_seconds)
