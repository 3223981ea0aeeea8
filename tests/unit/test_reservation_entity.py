from decimal import Decimal

import pytest

from app.domain.entities.reservation import BookingStatus, PaymentStatus, Reservation
from app.domain.errors import InvalidBookingTransitionError
from app.domain.value_objects.money import Money
from app.domain.value_objects.stay_dates import StayDates


def _pending(book_hash: str | None = "h-1") -> Reservation:
    reservation = Reservation.create_pending(
        reservation_id="res-1",
        book_hash="h-1",
        stay=StayDates.from_iso("2026-03-01", "2026-03-03"),
        guests_count=2,
        total=Money(amount=Decimal("240"), currency_code="BYN"),
        prebook={"price": "240"},
    )
    reservation.book_hash = book_hash
    return reservation


def test_create_pending_computes_price_per_night():
    reservation = _pending()
    assert reservation.booking_status == BookingStatus.PENDING_PAYMENT
    assert reservation.payment_status == PaymentStatus.PENDING
    assert reservation.price_per_night == Decimal("120.00")
    assert reservation.total == Money(amount=Decimal("240"), currency_code="BYN")


def test_happy_path_transitions():
    reservation = _pending()
    reservation.mark_paid("pay-1")
    assert reservation.booking_status == BookingStatus.BOOKING_PROCESSING
    assert reservation.is_paid
    reservation.attach_supplier_ids("proc-1", "ord-1")
    reservation.confirm()
    assert reservation.booking_status == BookingStatus.CONFIRMED
    assert reservation.confirmed_at is not None


def test_terminal_states_never_change():
    reservation = _pending()
    reservation.mark_paid("pay-1")
    reservation.fail("supplier said no")
    with pytest.raises(InvalidBookingTransitionError):
        reservation.confirm()
    with pytest.raises(InvalidBookingTransitionError):
        reservation.fail("again")


def test_status_never_moves_backwards():
    reservation = _pending()
    reservation.mark_paid("pay-1")
    with pytest.raises(InvalidBookingTransitionError):
        reservation.mark_paid("pay-2")


def test_paid_without_book_hash_fails_booking():
    reservation = _pending(book_hash=None)
    reservation.mark_paid("pay-1")
    assert reservation.booking_status == BookingStatus.BOOKING_FAILED
    assert reservation.payment_status == PaymentStatus.PAID
    assert reservation.booking_error == "missing book_hash"


def test_supplier_ids_are_set_once():
    reservation = _pending()
    reservation.attach_supplier_ids("proc-1", None)
    reservation.attach_supplier_ids("proc-2", "ord-1")
    assert reservation.process_id == "proc-1"
    assert reservation.order_id == "ord-1"
    assert reservation.supplier_reference == "proc-1"
