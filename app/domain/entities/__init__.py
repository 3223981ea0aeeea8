"""Entidades del dominio de reservaciones."""

from app.domain.entities.reservation import (
    TERMINAL_BOOKING_STATUSES,
    BookingStatus,
    PaymentStatus,
    Reservation,
)

__all__ = [
    "Reservation",
    "BookingStatus",
    "PaymentStatus",
    "TERMINAL_BOOKING_STATUSES",
]
