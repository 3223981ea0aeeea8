"""
Capa de Infraestructura - Reservas de Hotel.

Esta capa contiene las implementaciones concretas de los puertos (interfaces).

Estructura:
- db/: Tabla de reservas y repositorio SQL
- gateways/: Cliente HTTP y fachada del proveedor ETG
- cache/: Caché por niveles (Redis + memoria)
- webhooks/: Verificación de firmas HMAC
- in_memory/: Implementaciones in-memory para desarrollo y testing
"""

from app.infrastructure.cache import MemoryCacheTier, RedisCacheTier, TieredCache
from app.infrastructure.db.repositories.reservation_repo_sql import ReservationRepoSQL
from app.infrastructure.gateways.etg_client import EtgClient, EtgCredentials
from app.infrastructure.gateways.etg_service import EtgSupplierService
from app.infrastructure.in_memory import InMemoryReservationRepo, StubSupplierGateway

__all__ = [
    # Database
    "ReservationRepoSQL",
    # Gateways
    "EtgClient",
    "EtgCredentials",
    "EtgSupplierService",
    # Cache
    "MemoryCacheTier",
    "RedisCacheTier",
    "TieredCache",
    # In-Memory Implementations
    "InMemoryReservationRepo",
    "StubSupplierGateway",
]
