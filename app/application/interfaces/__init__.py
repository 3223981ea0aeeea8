"""Interfaces (Puertos) de la capa de aplicación."""

from app.application.interfaces.cache import CacheTier, CacheTierUnavailable
from app.application.interfaces.reservation_repo import ReservationRepo
from app.application.interfaces.supplier_gateway import SupplierGateway

__all__ = [
    # Repositories
    "ReservationRepo",
    # Gateways
    "SupplierGateway",
    # Cache
    "CacheTier",
    "CacheTierUnavailable",
]
