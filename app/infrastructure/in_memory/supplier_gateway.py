from decimal import Decimal
from typing import Any
from uuid import uuid4

from app.application.interfaces.supplier_gateway import (
    BookingOutcome,
    FinishStatus,
    HotelDumpMeta,
    HotelPage,
    RateQuote,
    SearchResult,
    SerpHotel,
    SupplierGateway,
    TerminalBooking,
)
from app.application.validators import (
    BookingParams,
    HotelPageParams,
    PrebookParams,
    SearchParams,
    validate_params,
)
from app.domain.errors import ValidationError
from app.domain.value_objects.money import Money

STUB_HID = 1000
STUB_PRICE = Decimal("100.00")


class StubSupplierGateway(SupplierGateway):
    """Deterministic supplier used when the app runs in memory. Every booking succeeds."""

    def __init__(self) -> None:
        self.orders: dict[str, str] = {}

    async def search_hotels(self, params: SearchParams | dict[str, Any]) -> SearchResult:
        parsed = validate_params(SearchParams, params)
        hids = parsed.hids or [STUB_HID]
        hotels = [
            SerpHotel(hid=hid, name=f"Stub hotel {hid}", stars=3, price=STUB_PRICE, currency=parsed.currency, search_hash="stub-search")
            for hid in hids
        ]
        return SearchResult(hotels=hotels, search_hash="stub-search")

    async def search_region(self, payload: dict[str, Any]) -> dict[str, Any]:
        return {"hotels": [{"hid": STUB_HID, "name": f"Stub hotel {STUB_HID}"}], "region_id": payload.get("region_id")}

    async def search_geo(self, payload: dict[str, Any]) -> dict[str, Any]:
        return {"hotels": [{"hid": STUB_HID, "name": f"Stub hotel {STUB_HID}"}]}

    async def get_hotel_page(self, params: HotelPageParams | dict[str, Any]) -> HotelPage:
        parsed = validate_params(HotelPageParams, params)
        hid = parsed.hid or STUB_HID
        rate = {"book_hash": f"stub-{hid}", "room_name": "Standard", "payment_options": {"currency": parsed.currency}}
        return HotelPage(data={"hotels": [{"id": parsed.hotel_id or str(hid), "rates": [rate]}]}, rates=[rate])

    async def quote(
        self,
        book_hash: str,
        currency: str | None = None,
        price_increase_percent: float | None = None,
    ) -> RateQuote:
        parsed = validate_params(PrebookParams, {"book_hash": book_hash, "currency": currency or "BYN"})
        total = Money(amount=STUB_PRICE, currency_code=parsed.currency)
        raw = {"book_hash": parsed.book_hash, "price": str(STUB_PRICE), "currency": parsed.currency}
        return RateQuote(book_hash=parsed.book_hash, total=total, daily=[], raw=raw)

    async def start_booking(self, params: BookingParams | dict[str, Any]) -> BookingOutcome:
        validate_params(BookingParams, params)
        order_id = f"STUB-{uuid4().hex[:8].upper()}"
        self.orders[order_id] = "ok"
        return TerminalBooking(order_id=order_id, status="ok")

    async def poll_finish(self, process_or_order_id: str) -> FinishStatus:
        return FinishStatus(order_id=process_or_order_id, status=self.orders.get(process_or_order_id, "processing"))

    async def dump_static_catalog(self) -> HotelDumpMeta:
        return HotelDumpMeta(generated_at="2026-01-01T00:00:00+00:00", file_url="")

    async def incremental_dump(self, since: str | None = None) -> dict[str, Any]:
        return {"since": since, "file_url": ""}

    async def get_hotel_info(self, hid: int | None = None, hotel_id: str | None = None) -> Any:
        if not hid and not hotel_id:
            raise ValidationError(fields=["hid", "hotel_id"], message="get_hotel_info requires hid or hotel_id")
        return {"id": hotel_id or str(hid), "hid": hid, "name": f"Stub hotel {hid or hotel_id}"}
