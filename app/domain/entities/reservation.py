"""Entidad Reservation - Agregado raíz del dominio de reservas de hotel."""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any

from app.domain.errors import InvalidBookingTransitionError
from app.domain.value_objects.money import DEFAULT_CURRENCY, Money
from app.domain.value_objects.stay_dates import StayDates


class BookingStatus(str, Enum):
    """Estados del ciclo de vida del booking con el proveedor."""

    PENDING_PAYMENT = "pending_payment"
    BOOKING_PROCESSING = "booking_processing"
    CONFIRMED = "confirmed"
    BOOKING_FAILED = "booking_failed"


class PaymentStatus(str, Enum):
    """Estados de pago de una reservación."""

    PENDING = "pending"
    PAID = "paid"


# Orden de avance; los estados terminales comparten rango.
_BOOKING_RANK = {
    BookingStatus.PENDING_PAYMENT: 0,
    BookingStatus.BOOKING_PROCESSING: 1,
    BookingStatus.CONFIRMED: 2,
    BookingStatus.BOOKING_FAILED: 2,
}

TERMINAL_BOOKING_STATUSES = frozenset({BookingStatus.CONFIRMED, BookingStatus.BOOKING_FAILED})


@dataclass
class Reservation:
    """
    Entidad principal del dominio - Agregado Raíz.

    Representa el intento de reserva de un huésped a través del pago y la
    confirmación del proveedor. `booking_status` solo avanza:
    pending_payment -> booking_processing -> confirmed | booking_failed.
    """

    # Identificadores
    id: str
    book_hash: str | None = None

    # Estancia
    check_in: date | None = None
    check_out: date | None = None
    guests_count: int = 1
    room_type: str | None = None
    price_per_night: Decimal | None = None
    total_price: Decimal | None = None
    currency: str = DEFAULT_CURRENCY

    # Huésped
    guest_name: str | None = None
    guest_email: str | None = None
    guest_phone: str | None = None

    # Proveedor
    prebook: dict[str, Any] | None = None
    process_id: str | None = None
    order_id: str | None = None
    payment_intent_id: str | None = None

    # Estados
    payment_status: PaymentStatus = PaymentStatus.PENDING
    booking_status: BookingStatus = BookingStatus.PENDING_PAYMENT
    booking_error: str | None = None

    # Control de concurrencia
    lock_version: int = 0

    # Timestamps
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    confirmed_at: datetime | None = None

    # === Propiedades calculadas ===

    @property
    def stay(self) -> StayDates | None:
        """Retorna las fechas como Value Object."""
        if self.check_in and self.check_out:
            return StayDates(check_in=self.check_in, check_out=self.check_out)
        return None

    @property
    def total(self) -> Money | None:
        if self.total_price is None:
            return None
        return Money(amount=self.total_price, currency_code=self.currency)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID

    @property
    def is_terminal(self) -> bool:
        return self.booking_status in TERMINAL_BOOKING_STATUSES

    @property
    def payment_already_applied(self) -> bool:
        """True si una notificación de pago ya fue aplicada (guardia de idempotencia)."""
        return self.is_paid or self.booking_status in (
            BookingStatus.BOOKING_PROCESSING,
            BookingStatus.CONFIRMED,
        )

    @property
    def supplier_reference(self) -> str | None:
        """Identificador con el que se consulta el estado al proveedor."""
        return self.process_id or self.order_id

    # === Métodos de negocio ===

    def _advance(self, target: BookingStatus) -> None:
        current = self.booking_status
        if current in TERMINAL_BOOKING_STATUSES or _BOOKING_RANK[target] <= _BOOKING_RANK[current]:
            raise InvalidBookingTransitionError(self.id, current.value, target.value)
        if target in (BookingStatus.BOOKING_PROCESSING, BookingStatus.CONFIRMED) and not self.book_hash:
            raise InvalidBookingTransitionError(self.id, current.value, target.value)
        self.booking_status = target

    def mark_paid(self, payment_intent_id: str | None) -> None:
        """
        Registra el pago y pasa a booking_processing.

        Sin book_hash el booking con el proveedor no puede iniciarse: el pago
        se registra igual y el booking queda fallido.
        """
        if self.book_hash:
            self._advance(BookingStatus.BOOKING_PROCESSING)
            self.booking_error = None
        else:
            self._advance(BookingStatus.BOOKING_FAILED)
            self.booking_error = "missing book_hash"
        self.payment_status = PaymentStatus.PAID
        self.payment_intent_id = payment_intent_id

    def attach_supplier_ids(self, process_id: str | None, order_id: str | None) -> None:
        """Asigna process_id / order_id una sola vez; luego son inmutables."""
        if process_id and not self.process_id:
            self.process_id = process_id
        if order_id and not self.order_id:
            self.order_id = order_id

    def confirm(self, confirmed_at: datetime | None = None) -> None:
        """Confirma la reservación con el proveedor."""
        self._advance(BookingStatus.CONFIRMED)
        self.confirmed_at = confirmed_at or datetime.now(timezone.utc)
        self.booking_error = None

    def fail(self, error_message: str) -> None:
        """Marca el booking como fallido (terminal)."""
        self._advance(BookingStatus.BOOKING_FAILED)
        self.booking_error = error_message

    def note_error(self, error_message: str) -> None:
        """Anota un error sin cambiar de estado (ej. timeout pendiente de reconciliar)."""
        self.booking_error = error_message

    @classmethod
    def create_pending(
        cls,
        reservation_id: str,
        book_hash: str,
        stay: StayDates,
        guests_count: int,
        total: Money,
        prebook: dict[str, Any] | None,
        room_type: str | None = None,
        price_per_night: Decimal | None = None,
        guest_name: str | None = None,
        guest_email: str | None = None,
        guest_phone: str | None = None,
    ) -> "Reservation":
        """Factory para crear una reservación pendiente de pago."""
        if not book_hash:
            raise ValueError("book_hash es requerido para crear la reservación")
        return cls(
            id=reservation_id,
            book_hash=book_hash,
            check_in=stay.check_in,
            check_out=stay.check_out,
            guests_count=guests_count,
            room_type=room_type,
            price_per_night=price_per_night
            if price_per_night is not None
            else total.per_night(stay.nights).amount,
            total_price=total.amount,
            currency=total.currency_code,
            guest_name=guest_name,
            guest_email=guest_email,
            guest_phone=guest_phone,
            prebook=prebook,
        )
