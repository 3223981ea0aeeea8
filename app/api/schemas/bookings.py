from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, condecimal, constr

from app.domain.entities.reservation import Reservation

Money = condecimal(max_digits=12, decimal_places=2)
IsoDate = constr(pattern=r"^\d{4}-\d{2}-\d{2}$")


class PrebookRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    check_in: IsoDate = Field(alias="checkIn")
    check_out: IsoDate = Field(alias="checkOut")
    guests_count: int = Field(alias="guestsCount", ge=1)
    room_type: str | None = Field(default=None, alias="roomType")
    price_per_night: Money | None = Field(default=None, alias="pricePerNight")
    total_price: Money | None = Field(default=None, alias="totalPrice")
    book_hash: str | None = Field(default=None, alias="bookHash")
    hid: int | None = None
    search_hash: str | None = Field(default=None, alias="searchHash")
    residency: str | None = None
    currency: constr(strip_whitespace=True, min_length=3, max_length=3) = "BYN"
    guest_name: str | None = Field(default=None, alias="guestName")
    guest_email: EmailStr | None = Field(default=None, alias="guestEmail")
    guest_phone: str | None = Field(default=None, alias="guestPhone")


class PrebookResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    local_booking_id: str = Field(serialization_alias="localBookingId")
    prebook: dict[str, Any]
    price: Decimal | None = None
    book_hash: str = Field(serialization_alias="bookHash")


class ReservationView(BaseModel):
    id: str
    booking_status: str
    payment_status: str
    check_in: date | None = None
    check_out: date | None = None
    guests_count: int
    room_type: str | None = None
    price_per_night: Decimal | None = None
    total_price: Decimal | None = None
    currency: str
    book_hash: str | None = None
    process_id: str | None = None
    order_id: str | None = None
    payment_intent_id: str | None = None
    booking_error: str | None = None
    created_at: datetime
    confirmed_at: datetime | None = None

    @classmethod
    def from_entity(cls, reservation: Reservation) -> "ReservationView":
        return cls(
            id=reservation.id,
            booking_status=reservation.booking_status.value,
            payment_status=reservation.payment_status.value,
            check_in=reservation.check_in,
            check_out=reservation.check_out,
            guests_count=reservation.guests_count,
            room_type=reservation.room_type,
            price_per_night=reservation.price_per_night,
            total_price=reservation.total_price,
            currency=reservation.currency,
            book_hash=reservation.book_hash,
            process_id=reservation.process_id,
            order_id=reservation.order_id,
            payment_intent_id=reservation.payment_intent_id,
            booking_error=reservation.booking_error,
            created_at=reservation.created_at,
            confirmed_at=reservation.confirmed_at,
        )


class WebhookEnvelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    event: str
    data: Any = None


class ReconcileSummaryResponse(BaseModel):
    checked: int
    confirmed: list[str]
    failed: list[str]
    pending: list[str]
