from typing import Sequence

from app.domain.entities.reservation import BookingStatus, Reservation


class ReservationRepo:
    async def get_by_id(self, reservation_id: str) -> Reservation | None:
        raise NotImplementedError

    async def get_by_order_id(self, order_id: str) -> Reservation | None:
        raise NotImplementedError

    async def insert(self, reservation: Reservation) -> None:
        raise NotImplementedError

    async def update(self, reservation: Reservation, expected_lock_version: int) -> None:
        """
        Persists every field of `reservation` only if the stored row still has
        `expected_lock_version`; on success the version is incremented on both
        the row and the entity.

        Raises:
            ReservationNotFoundError: the row does not exist.
            OptimisticLockError: another writer got there first.
        """
        raise NotImplementedError

    async def list_by_booking_status(self, status: BookingStatus, limit: int = 50) -> Sequence[Reservation]:
        raise NotImplementedError

    async def list_reconcilable(self, limit: int = 50) -> Sequence[Reservation]:
        """
        Reservations in booking_processing that carry a process_id or order_id,
        oldest first. Rows without a supplier reference cannot be polled.
        """
        raise NotImplementedError
