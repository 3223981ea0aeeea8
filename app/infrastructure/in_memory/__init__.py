"""Implementaciones in-memory para desarrollo y testing."""

from app.infrastructure.in_memory.reservation_repo import InMemoryReservationRepo
from app.infrastructure.in_memory.supplier_gateway import StubSupplierGateway

__all__ = [
    "InMemoryReservationRepo",
    "StubSupplierGateway",
]
