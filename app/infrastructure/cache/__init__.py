from app.infrastructure.cache.memory_tier import MemoryCacheTier
from app.infrastructure.cache.redis_tier import RedisCacheTier
from app.infrastructure.cache.tiered_cache import TieredCache, build_tiered_cache

__all__ = [
    "MemoryCacheTier",
    "RedisCacheTier",
    "TieredCache",
    "build_tiered_cache",
]
