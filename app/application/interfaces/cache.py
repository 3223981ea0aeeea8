from abc import ABC, abstractmethod
from typing import Any


class CacheTierUnavailable(Exception):
    """A cache tier could not serve the request (connection, timeout, decode)."""


class CacheTier(ABC):
    name: str = "tier"

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """
        Returns the cached value or None on miss/expiry.

        Raises:
            CacheTierUnavailable: when the tier itself is unreachable.
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        pass

    async def close(self) -> None:
        """Releases connections held by the tier. No-op by default."""
        return None
