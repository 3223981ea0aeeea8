from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_use_cases
from app.api.schemas.bookings import PrebookRequest, PrebookResponse, ReservationView
from app.application.use_cases.booking_lifecycle import NewReservationRequest

router = APIRouter()


@router.post(
    "/bookings/prebook",
    status_code=status.HTTP_200_OK,
)
async def prebook(
    payload: PrebookRequest,
    use_cases=Depends(get_use_cases),
) -> dict:
    created = await use_cases["coordinator"].create_reservation(
        NewReservationRequest(
            check_in=payload.check_in,
            check_out=payload.check_out,
            guests_count=payload.guests_count,
            room_type=payload.room_type,
            price_per_night=payload.price_per_night,
            total_price=payload.total_price,
            book_hash=payload.book_hash,
            hid=payload.hid,
            search_hash=payload.search_hash,
            residency=payload.residency,
            currency=payload.currency,
            guest_name=payload.guest_name,
            guest_email=payload.guest_email,
            guest_phone=payload.guest_phone,
        )
    )
    response = PrebookResponse(
        local_booking_id=created.reservation.id,
        prebook=created.quote.raw,
        price=created.quote.total.amount,
        book_hash=created.reservation.book_hash,
    )
    return response.model_dump(mode="json", by_alias=True)


@router.get(
    "/bookings/{reservation_id}",
    response_model=ReservationView,
    status_code=status.HTTP_200_OK,
)
async def get_booking(
    reservation_id: str,
    use_cases=Depends(get_use_cases),
) -> ReservationView:
    reservation = await use_cases["coordinator"].get_reservation(reservation_id)
    return ReservationView.from_entity(reservation)
