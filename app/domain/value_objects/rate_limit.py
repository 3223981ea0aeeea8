"""Value Object RateLimitSnapshot - metadatos de rate limit del proveedor."""

from dataclasses import dataclass
from typing import Mapping


def _header_int(headers: Mapping[str, str], *names: str) -> int:
    for name in names:
        value = headers.get(name)
        if value is None or value == "":
            continue
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return 0
    return 0


@dataclass(frozen=True)
class RateLimitSnapshot:
    """
    Límite de peticiones reportado por el proveedor en cada respuesta.

    Se usa solo para logging y decisiones de backoff; nunca se persiste.
    """

    limit: int = 0
    remaining: int = 0
    reset_seconds: int = 0

    @classmethod
    def empty(cls) -> "RateLimitSnapshot":
        return cls()

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "RateLimitSnapshot":
        """Construye el snapshot desde headers HTTP; headers ausentes dan ceros."""
        return cls(
            limit=_header_int(headers, "X-RateLimit-RequestsNumber", "X-RateLimit-Limit"),
            remaining=_header_int(headers, "X-RateLimit-Remaining"),
            reset_seconds=_header_int(headers, "X-RateLimit-Reset"),
        )
