"""
Capa de Dominio - Sistema de Reservaciones de Hotel.

Esta capa contiene la lógica de negocio pura, sin dependencias de frameworks.
Incluye entidades, value objects y excepciones de dominio.

Estructura:
- entities/: Entidades del dominio (Reservation)
- value_objects/: Objetos de valor inmutables (Money, StayDates, RateLimitSnapshot)
- errors.py: Excepciones específicas del dominio
"""

from app.domain.entities import (
    TERMINAL_BOOKING_STATUSES,
    BookingStatus,
    PaymentStatus,
    Reservation,
)
from app.domain.errors import (
    DomainError,
    InvalidBookingTransitionError,
    InvalidResponseError,
    NoRatesAvailableError,
    OptimisticLockError,
    PermanentServerError,
    RateLimitedError,
    ReservationNotFoundError,
    SupplierError,
    SupplierNetworkError,
    SupplierTimeoutError,
    TransientServerError,
    ValidationError,
)
from app.domain.value_objects import Money, RateLimitSnapshot, StayDates

__all__ = [
    # Entities
    "Reservation",
    "BookingStatus",
    "PaymentStatus",
    "TERMINAL_BOOKING_STATUSES",
    # Value Objects
    "Money",
    "RateLimitSnapshot",
    "StayDates",
    # Errors
    "DomainError",
    "ReservationNotFoundError",
    "InvalidBookingTransitionError",
    "OptimisticLockError",
    "NoRatesAvailableError",
    "ValidationError",
    "SupplierError",
    "SupplierTimeoutError",
    "RateLimitedError",
    "TransientServerError",
    "PermanentServerError",
    "InvalidResponseError",
    "SupplierNetworkError",
]
