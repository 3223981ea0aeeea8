"""Distributed cache tier backed by Redis."""

import json
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.application.interfaces.cache import CacheTier, CacheTierUnavailable


class RedisCacheTier(CacheTier):
    name = "redis"

    def __init__(self, client: Redis, key_prefix: str = "") -> None:
        self._client = client
        self._key_prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, key_prefix: str = "") -> "RedisCacheTier":
        client = Redis.from_url(
            url,
            decode_responses=False,
            socket_connect_timeout=1,
            socket_timeout=1,
        )
        return cls(client=client, key_prefix=key_prefix)

    def _key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    async def get(self, key: str) -> Any | None:
        try:
            data = await self._client.get(self._key(key))
        except (RedisError, OSError) as exc:
            raise CacheTierUnavailable(f"redis get failed: {exc}") from exc
        if data is None:
            return None
        try:
            return json.loads(data)
        except ValueError as exc:
            raise CacheTierUnavailable(f"redis value for {key} is not JSON") from exc

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            await self._client.set(self._key(key), json.dumps(value, default=str), ex=ttl_seconds)
        except (RedisError, OSError) as exc:
            raise CacheTierUnavailable(f"redis set failed: {exc}") from exc

    async def close(self) -> None:
        try:
            await self._client.aclose()
        except (RedisError, OSError) as exc:
            raise CacheTierUnavailable(f"redis close failed: {exc}") from exc
