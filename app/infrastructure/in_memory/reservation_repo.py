from copy import deepcopy
from typing import Sequence

from app.application.interfaces.reservation_repo import ReservationRepo
from app.domain.entities.reservation import BookingStatus, Reservation
from app.domain.errors import OptimisticLockError, ReservationNotFoundError


class InMemoryReservationRepo(ReservationRepo):
    def __init__(self) -> None:
        self.reservations: dict[str, Reservation] = {}

    async def get_by_id(self, reservation_id: str) -> Reservation | None:
        stored = self.reservations.get(reservation_id)
        # Callers mutate the entity before a conditional write; never hand out the stored row
        return deepcopy(stored) if stored else None

    async def get_by_order_id(self, order_id: str) -> Reservation | None:
        for stored in self.reservations.values():
            if stored.order_id == order_id:
                return deepcopy(stored)
        return None

    async def insert(self, reservation: Reservation) -> None:
        if reservation.id in self.reservations:
            raise ValueError("Reservation id already exists")
        self.reservations[reservation.id] = deepcopy(reservation)

    async def update(self, reservation: Reservation, expected_lock_version: int) -> None:
        stored = self.reservations.get(reservation.id)
        if stored is None:
            raise ReservationNotFoundError(reservation.id)
        if stored.lock_version != expected_lock_version:
            raise OptimisticLockError(reservation.id, expected_lock_version, stored.lock_version)
        reservation.lock_version = expected_lock_version + 1
        self.reservations[reservation.id] = deepcopy(reservation)

    async def list_by_booking_status(self, status: BookingStatus, limit: int = 50) -> Sequence[Reservation]:
        matches = sorted(
            (r for r in self.reservations.values() if r.booking_status == status),
            key=lambda r: r.created_at,
        )
        return [deepcopy(r) for r in matches[:limit]]

    async def list_reconcilable(self, limit: int = 50) -> Sequence[Reservation]:
        matches = sorted(
            (
                r
                for r in self.reservations.values()
                if r.booking_status == BookingStatus.BOOKING_PROCESSING and r.supplier_reference
            ),
            key=lambda r: r.created_at,
        )
        return [deepcopy(r) for r in matches[:limit]]
