"""
Coordinador del ciclo de vida de una reservación.

pending_payment -> booking_processing -> confirmed | booking_failed

Cada transición es una lectura fresca seguida de una escritura condicional
sobre `lock_version`; perder la carrera equivale a una notificación duplicada.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Callable
from uuid import uuid4

from app.application.interfaces.reservation_repo import ReservationRepo
from app.application.interfaces.supplier_gateway import (
    FinishStatus,
    RateQuote,
    SupplierGateway,
    TerminalBooking,
)
from app.domain.entities.reservation import BookingStatus, Reservation
from app.domain.errors import (
    NoRatesAvailableError,
    OptimisticLockError,
    ReservationNotFoundError,
    SupplierError,
    SupplierTimeoutError,
    ValidationError,
)
from app.domain.value_objects.money import DEFAULT_CURRENCY, Money
from app.domain.value_objects.stay_dates import StayDates

DEFAULT_RESIDENCY = "BY"


class PaymentOutcome(str, Enum):
    APPLIED = "applied"
    DUPLICATE = "duplicate"


@dataclass
class NewReservationRequest:
    check_in: str
    check_out: str
    guests_count: int = 1
    room_type: str | None = None
    price_per_night: Decimal | None = None
    total_price: Decimal | None = None
    book_hash: str | None = None
    hid: int | None = None
    search_hash: str | None = None
    residency: str | None = None
    currency: str = DEFAULT_CURRENCY
    guest_name: str | None = None
    guest_email: str | None = None
    guest_phone: str | None = None


@dataclass
class CreatedReservation:
    reservation: Reservation
    quote: RateQuote


@dataclass
class ReconcileSummary:
    checked: int = 0
    confirmed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    pending: list[str] = field(default_factory=list)


class BookingLifecycleCoordinator:
    def __init__(
        self,
        reservation_repo: ReservationRepo,
        supplier_gateway: SupplierGateway,
        id_generator: Callable[[], str] = lambda: str(uuid4()),
        payment_provider: str = "external",
        return_url: str | None = None,
    ) -> None:
        self._reservation_repo = reservation_repo
        self._supplier_gateway = supplier_gateway
        self._id_generator = id_generator
        self._payment_provider = payment_provider
        self._return_url = return_url
        self._logger = logging.getLogger(__name__)

    # === Creación ===

    async def create_reservation(self, request: NewReservationRequest) -> CreatedReservation:
        try:
            stay = StayDates.from_iso(request.check_in, request.check_out)
        except ValueError as exc:
            raise ValidationError(fields=["check_in", "check_out"], message=str(exc)) from exc

        book_hash = request.book_hash or await self._resolve_book_hash(request)
        quote = await self._supplier_gateway.quote(book_hash, currency=request.currency)

        if request.total_price is not None:
            total = Money(amount=Decimal(str(request.total_price)), currency_code=quote.total.currency_code)
        else:
            total = quote.total

        reservation = Reservation.create_pending(
            reservation_id=self._id_generator(),
            book_hash=book_hash,
            stay=stay,
            guests_count=request.guests_count,
            total=total,
            prebook=quote.raw,
            room_type=request.room_type,
            price_per_night=request.price_per_night,
            guest_name=request.guest_name,
            guest_email=request.guest_email,
            guest_phone=request.guest_phone,
        )
        await self._reservation_repo.insert(reservation)
        self._logger.info(
            "Reservation created",
            extra={
                "reservation_id": reservation.id,
                "book_hash": book_hash,
                "total_price": str(reservation.total_price),
                "currency": reservation.currency,
                "nights": stay.nights,
            },
        )
        return CreatedReservation(reservation=reservation, quote=quote)

    async def _resolve_book_hash(self, request: NewReservationRequest) -> str:
        guests = [{"adults": request.guests_count}]
        hid = request.hid
        if hid is None:
            search = await self._supplier_gateway.search_hotels(
                {
                    "checkin": request.check_in,
                    "checkout": request.check_out,
                    "guests": guests,
                    "residency": request.residency or DEFAULT_RESIDENCY,
                    "currency": request.currency,
                }
            )
            hid = next((hotel.hid for hotel in search.hotels if hotel.hid is not None), None)
            if hid is None:
                raise NoRatesAvailableError("No hotels found")

        page_params: dict[str, Any] = {
            "hid": hid,
            "checkin": request.check_in,
            "checkout": request.check_out,
            "guests": guests,
            "currency": request.currency,
        }
        if request.search_hash:
            page_params["search_hash"] = request.search_hash
        page = await self._supplier_gateway.get_hotel_page(page_params)
        book_hash = page.first_book_hash
        if not book_hash:
            raise NoRatesAvailableError()
        return book_hash

    # === Pago ===

    async def confirm_payment(self, reservation_id: str, payment_ref: str | None) -> PaymentOutcome:
        reservation = await self.get_reservation(reservation_id)
        if reservation.payment_already_applied or reservation.is_terminal:
            self._logger.info(
                "Duplicate payment notification ignored",
                extra={
                    "reservation_id": reservation_id,
                    "payment_ref": payment_ref,
                    "booking_status": reservation.booking_status.value,
                },
            )
            return PaymentOutcome.DUPLICATE

        expected_lock_version = reservation.lock_version
        reservation.mark_paid(payment_ref)
        try:
            await self._reservation_repo.update(reservation, expected_lock_version)
        except OptimisticLockError:
            self._logger.info(
                "Payment notification lost the race, treated as duplicate",
                extra={"reservation_id": reservation_id, "payment_ref": payment_ref},
            )
            return PaymentOutcome.DUPLICATE

        self._logger.info(
            "Payment applied",
            extra={
                "reservation_id": reservation_id,
                "payment_ref": payment_ref,
                "booking_status": reservation.booking_status.value,
            },
        )
        if reservation.booking_status == BookingStatus.BOOKING_PROCESSING:
            await self._start_supplier_booking(reservation)
        return PaymentOutcome.APPLIED

    def _booking_params(self, reservation: Reservation) -> dict[str, Any]:
        params: dict[str, Any] = {
            "book_hash": reservation.book_hash,
            "guest_name": reservation.guest_name or "",
            "guest_email": reservation.guest_email or "",
            "guests": [{"adults": reservation.guests_count}],
            "payment": {
                "method": "external",
                "provider": self._payment_provider,
                "external_payment_id": reservation.payment_intent_id,
            },
        }
        if reservation.guest_phone:
            params["guest_phone"] = reservation.guest_phone
        if self._return_url:
            params["return_path"] = self._return_url
        return params

    async def _start_supplier_booking(self, reservation: Reservation) -> None:
        expected_lock_version = reservation.lock_version
        try:
            outcome = await self._supplier_gateway.start_booking(self._booking_params(reservation))
        except SupplierTimeoutError as exc:
            # The supplier may have accepted the booking; leave it for reconciliation
            reservation.note_error(f"{exc.code}: {exc.message}")
            await self._reservation_repo.update(reservation, expected_lock_version)
            self._logger.warning(
                "Supplier booking timed out, left in booking_processing",
                extra={"reservation_id": reservation.id, "capability": exc.capability},
            )
            return
        except (SupplierError, ValidationError) as exc:
            reservation.fail(f"{exc.code}: {exc.message}")
            await self._reservation_repo.update(reservation, expected_lock_version)
            self._logger.error(
                "Supplier booking failed",
                extra={
                    "reservation_id": reservation.id,
                    "error_code": exc.code,
                    "http_status": getattr(exc, "http_status", None),
                },
            )
            return

        reservation.attach_supplier_ids(outcome.process_id, outcome.order_id)
        if isinstance(outcome, TerminalBooking):
            if outcome.succeeded:
                reservation.confirm()
            else:
                reservation.fail(f"Supplier reported status '{outcome.status}'")
        await self._reservation_repo.update(reservation, expected_lock_version)
        self._logger.info(
            "Supplier booking started",
            extra={
                "reservation_id": reservation.id,
                "process_id": reservation.process_id,
                "order_id": reservation.order_id,
                "booking_status": reservation.booking_status.value,
            },
        )

    # === Reconciliación ===

    async def apply_supplier_status(self, reservation: Reservation, finish: FinishStatus) -> bool:
        """
        Aplica un estado terminal del proveedor. Retorna True si la reservación cambió.
        """
        if reservation.booking_status != BookingStatus.BOOKING_PROCESSING or not finish.is_terminal:
            return False
        expected_lock_version = reservation.lock_version
        reservation.attach_supplier_ids(None, finish.order_id)
        if finish.succeeded:
            reservation.confirm()
        else:
            reservation.fail(f"Supplier reported status '{finish.status}'")
        try:
            await self._reservation_repo.update(reservation, expected_lock_version)
        except OptimisticLockError:
            self._logger.info(
                "Supplier status already applied by another writer",
                extra={"reservation_id": reservation.id, "status": finish.status},
            )
            return False
        self._logger.info(
            "Supplier status applied",
            extra={
                "reservation_id": reservation.id,
                "order_id": reservation.order_id,
                "status": finish.status,
                "booking_status": reservation.booking_status.value,
            },
        )
        return True

    async def apply_order_status(self, order_id: str, status: str) -> Reservation | None:
        reservation = await self._reservation_repo.get_by_order_id(order_id)
        if reservation is None:
            self._logger.warning("Supplier status for unknown order", extra={"order_id": order_id, "status": status})
            return None
        await self.apply_supplier_status(reservation, FinishStatus(order_id=order_id, status=status))
        return reservation

    async def reconcile(self, reservation_id: str) -> Reservation:
        reservation = await self.get_reservation(reservation_id)
        await self._reconcile_one(reservation)
        return reservation

    async def reconcile_pending(self, limit: int = 50) -> ReconcileSummary:
        summary = ReconcileSummary()
        processing = await self._reservation_repo.list_reconcilable(limit)
        for reservation in processing:
            summary.checked += 1
            await self._reconcile_one(reservation)
            if reservation.booking_status == BookingStatus.CONFIRMED:
                summary.confirmed.append(reservation.id)
            elif reservation.booking_status == BookingStatus.BOOKING_FAILED:
                summary.failed.append(reservation.id)
            else:
                summary.pending.append(reservation.id)
        return summary

    async def _reconcile_one(self, reservation: Reservation) -> None:
        reference = reservation.supplier_reference
        if reservation.booking_status != BookingStatus.BOOKING_PROCESSING or not reference:
            return
        try:
            finish = await self._supplier_gateway.poll_finish(reference)
        except SupplierError as exc:
            self._logger.warning(
                "Supplier status poll failed",
                extra={"reservation_id": reservation.id, "error_code": exc.code},
            )
            return
        if not await self.apply_supplier_status(reservation, finish):
            self._logger.info(
                "Supplier booking still pending",
                extra={"reservation_id": reservation.id, "status": finish.status},
            )

    async def get_reservation(self, reservation_id: str) -> Reservation:
        reservation = await self._reservation_repo.get_by_id(reservation_id)
        if reservation is None:
            raise ReservationNotFoundError(reservation_id)
        return reservation
