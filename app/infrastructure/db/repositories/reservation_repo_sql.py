from typing import Any, Mapping, Sequence

from sqlalchemy import insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces.reservation_repo import ReservationRepo
from app.domain.entities.reservation import BookingStatus, PaymentStatus, Reservation
from app.domain.errors import OptimisticLockError, ReservationNotFoundError
from app.infrastructure.db.tables import bookings


def _to_row(reservation: Reservation) -> dict[str, Any]:
    return {
        "id": reservation.id,
        "guest_name": reservation.guest_name,
        "guest_email": reservation.guest_email,
        "guest_phone": reservation.guest_phone,
        "room_type": reservation.room_type,
        "check_in": reservation.check_in,
        "check_out": reservation.check_out,
        "guests_count": reservation.guests_count,
        "price_per_night": reservation.price_per_night,
        "total_price": reservation.total_price,
        "currency": reservation.currency,
        "payment_status": reservation.payment_status.value,
        "booking_status": reservation.booking_status.value,
        "etg_book_hash": reservation.book_hash,
        "etg_prebook": reservation.prebook,
        "payment_intent_id": reservation.payment_intent_id,
        "etg_process_id": reservation.process_id,
        "etg_order_id": reservation.order_id,
        "booking_error": reservation.booking_error,
        "lock_version": reservation.lock_version,
        "created_at": reservation.created_at,
        "confirmed_at": reservation.confirmed_at,
    }


def _from_row(row: Mapping[str, Any]) -> Reservation:
    return Reservation(
        id=row["id"],
        book_hash=row["etg_book_hash"],
        check_in=row["check_in"],
        check_out=row["check_out"],
        guests_count=row["guests_count"],
        room_type=row["room_type"],
        price_per_night=row["price_per_night"],
        total_price=row["total_price"],
        currency=row["currency"],
        guest_name=row["guest_name"],
        guest_email=row["guest_email"],
        guest_phone=row["guest_phone"],
        prebook=row["etg_prebook"],
        process_id=row["etg_process_id"],
        order_id=row["etg_order_id"],
        payment_intent_id=row["payment_intent_id"],
        payment_status=PaymentStatus(row["payment_status"]),
        booking_status=BookingStatus(row["booking_status"]),
        booking_error=row["booking_error"],
        lock_version=row.get("lock_version", 0),
        created_at=row["created_at"],
        confirmed_at=row["confirmed_at"],
    )


class ReservationRepoSQL(ReservationRepo):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _fetch_one(self, *where_clause) -> Reservation | None:
        stmt = select(bookings).where(*where_clause).limit(1)
        result = await self._session.execute(stmt)
        row = result.mappings().first()
        if not row:
            return None
        return _from_row(row)

    async def get_by_id(self, reservation_id: str) -> Reservation | None:
        return await self._fetch_one(bookings.c.id == reservation_id)

    async def get_by_order_id(self, order_id: str) -> Reservation | None:
        return await self._fetch_one(bookings.c.etg_order_id == order_id)

    async def insert(self, reservation: Reservation) -> None:
        await self._session.execute(insert(bookings).values(_to_row(reservation)))
        await self._session.commit()

    async def update(self, reservation: Reservation, expected_lock_version: int) -> None:
        values = _to_row(reservation)
        values.pop("id")
        values.pop("created_at")
        values["lock_version"] = bookings.c.lock_version + 1
        stmt = (
            update(bookings)
            .where(
                bookings.c.id == reservation.id,
                bookings.c.lock_version == expected_lock_version,
            )
            .values(**values)
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            await self._session.rollback()
            current = await self._fetch_one(bookings.c.id == reservation.id)
            if current is None:
                raise ReservationNotFoundError(reservation.id)
            raise OptimisticLockError(reservation.id, expected_lock_version, current.lock_version)
        await self._session.commit()
        reservation.lock_version = expected_lock_version + 1

    async def list_by_booking_status(self, status: BookingStatus, limit: int = 50) -> Sequence[Reservation]:
        stmt = (
            select(bookings)
            .where(bookings.c.booking_status == status.value)
            .order_by(bookings.c.created_at)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [_from_row(row) for row in result.mappings().all()]

    async def list_reconcilable(self, limit: int = 50) -> Sequence[Reservation]:
        stmt = (
            select(bookings)
            .where(
                bookings.c.booking_status == BookingStatus.BOOKING_PROCESSING.value,
                or_(bookings.c.etg_process_id.is_not(None), bookings.c.etg_order_id.is_not(None)),
            )
            .order_by(bookings.c.created_at)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [_from_row(row) for row in result.mappings().all()]
