"""
Schemas de validación para cada llamada saliente al proveedor.

La validación corre antes de cualquier llamada de red; un fallo produce
`ValidationError` con los campos violados y el cliente HTTP nunca se invoca.
Solo se aplican defaults declarados (moneda, idioma, timeout).
"""

from datetime import date
from typing import Any, Literal, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    HttpUrl,
    field_validator,
    model_validator,
)
from pydantic import ValidationError as PydanticValidationError

from app.domain.errors import ValidationError

DEFAULT_CURRENCY = "BYN"
DEFAULT_LANGUAGE = "ru"
ISO_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"

ParamsT = TypeVar("ParamsT", bound=BaseModel)


class GuestRoom(BaseModel):
    model_config = ConfigDict(extra="forbid")

    adults: int = Field(ge=1)
    children: int | None = Field(default=None, ge=0)
    child_ages: list[int] | None = None


class _StayParams(BaseModel):
    checkin: str = Field(pattern=ISO_DATE_PATTERN)
    checkout: str = Field(pattern=ISO_DATE_PATTERN)
    guests: list[GuestRoom] = Field(min_length=1)
    currency: str = DEFAULT_CURRENCY
    lang: str = DEFAULT_LANGUAGE

    @field_validator("checkin", "checkout")
    @classmethod
    def validate_calendar_date(cls, value: str) -> str:
        date.fromisoformat(value)
        return value

    @model_validator(mode="after")
    def validate_range(self) -> "_StayParams":
        if date.fromisoformat(self.checkout) <= date.fromisoformat(self.checkin):
            raise ValueError("checkout must be after checkin")
        return self


class SearchParams(_StayParams):
    model_config = ConfigDict(extra="forbid")

    hids: list[int] | None = None
    residency: str | None = None
    timeout: int = Field(default=30, ge=10, le=300)


class HotelPageParams(_StayParams):
    model_config = ConfigDict(extra="forbid")

    hid: int | None = None
    hotel_id: str | None = None
    search_hash: str | None = None
    timeout: int = Field(default=60, ge=10, le=300)


class PrebookParams(BaseModel):
    model_config = ConfigDict(extra="forbid")

    book_hash: str = Field(min_length=1)
    price_increase_percent: float = Field(default=0, ge=0, le=100)
    currency: str = DEFAULT_CURRENCY


class BookingPayment(BaseModel):
    model_config = ConfigDict(extra="forbid")

    method: Literal["external", "card", "offline"]
    provider: str | None = None
    external_payment_id: str | None = None


class BookingParams(BaseModel):
    model_config = ConfigDict(extra="forbid")

    book_hash: str = Field(min_length=1)
    guest_name: str
    guest_email: EmailStr
    guest_phone: str | None = None
    guests: list[GuestRoom] | None = None
    nationality: str | None = None
    special_requests: str | None = None
    payment: BookingPayment | None = None
    return_path: HttpUrl | None = None


def validate_params(model: type[ParamsT], raw: ParamsT | dict[str, Any]) -> ParamsT:
    """
    Valida `raw` contra el schema de la capacidad y aplica defaults.

    Raises:
        ValidationError: con el conjunto de campos violados.
    """
    if isinstance(raw, model):
        raw = raw.model_dump(mode="json", exclude_unset=True)
    try:
        return model.model_validate(raw)
    except PydanticValidationError as exc:
        fields = [
            ".".join(str(part) for part in error["loc"]) or "payload"
            for error in exc.errors()
        ]
        raise ValidationError(fields=fields, message=f"invalid {model.__name__}") from exc
