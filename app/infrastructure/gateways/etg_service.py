"""
ETG supplier gateway.

Each capability validates its parameters, calls the fixed B2B v3 path through
`EtgClient`, checks the `data` envelope and maps it to a typed result. Only the
static catalog dump is cached; prices are never cached.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from app.application.interfaces.supplier_gateway import (
    BookingOutcome,
    DailyPrice,
    FinishStatus,
    HotelDumpMeta,
    HotelPage,
    PendingBooking,
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
from app.domain.errors import InvalidResponseError, SupplierError, ValidationError
from app.domain.value_objects.money import Money
from app.infrastructure.cache.tiered_cache import TieredCache
from app.infrastructure.gateways.etg_client import EtgClient, SupplierResponse

logger = logging.getLogger(__name__)

SEARCH_PATH = "/api/b2b/v3/search/serp/hotels/"
SEARCH_REGION_PATH = "/api/b2b/v3/search/serp/region/"
SEARCH_GEO_PATH = "/api/b2b/v3/search/serp/geo/"
HOTEL_PAGE_PATH = "/api/b2b/v3/search/hp/"
PREBOOK_PATH = "/api/b2b/v3/hotel/prebook"
BOOKING_FORM_PATH = "/api/b2b/v3/hotel/order/booking/form/"
BOOKING_FINISH_PATH = "/api/b2b/v3/hotel/order/booking/finish/"
BOOKING_FINISH_STATUS_PATH = "/api/b2b/v3/hotel/order/booking/finish/status/"
HOTEL_DUMP_PATH = "/api/b2b/v3/hotel/info/dump/"
HOTEL_INCREMENTAL_DUMP_PATH = "/api/b2b/v3/hotel/info/incremental_dump/"
HOTEL_INFO_PATH = "/api/b2b/v3/hotel/info/"

HOTEL_DUMP_CACHE_KEY = "etg:hotel_dump_meta_v1"
HOTEL_DUMP_CACHE_TTL_SECONDS = 60 * 60 * 6

PREBOOK_TIMEOUT_SECONDS = 60.0
BOOKING_TIMEOUT_SECONDS = 60.0
FINISH_STATUS_TIMEOUT_SECONDS = 30.0
DUMP_TIMEOUT_SECONDS = 120.0
HOTEL_INFO_TIMEOUT_SECONDS = 30.0
SERP_TIMEOUT_SECONDS = 30.0


def _to_decimal(value: Any) -> Decimal | None:
    if value is None:
        return None
    try:
        parsed = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return parsed if parsed.is_finite() else None


def _str_or_none(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


class EtgSupplierService(SupplierGateway):
    def __init__(self, client: EtgClient, cache: TieredCache) -> None:
        self._client = client
        self._cache = cache

    async def close(self) -> None:
        await self._cache.close()

    async def _request(self, capability: str, path: str, **kwargs: Any) -> SupplierResponse:
        try:
            return await self._client.call(path, **kwargs)
        except SupplierError as exc:
            raise exc.with_capability(capability)

    @staticmethod
    def _envelope(response: SupplierResponse) -> dict[str, Any] | None:
        if not isinstance(response.data, dict):
            return None
        envelope = response.data.get("data")
        return envelope if isinstance(envelope, dict) else None

    async def _call(self, capability: str, path: str, **kwargs: Any) -> tuple[dict[str, Any], SupplierResponse]:
        response = await self._request(capability, path, **kwargs)
        envelope = self._envelope(response)
        if envelope is None:
            raise InvalidResponseError(
                f"Invalid {capability} response from ETG",
                raw=response.data,
                http_status=response.status_code,
                rate_limit=response.rate_limit,
                capability=capability,
            )
        return envelope, response

    async def search_hotels(self, params: SearchParams | dict[str, Any]) -> SearchResult:
        parsed = validate_params(SearchParams, params)
        body: dict[str, Any] = {
            "checkin": parsed.checkin,
            "checkout": parsed.checkout,
            "guests": [g.model_dump(exclude_none=True) for g in parsed.guests],
            "residency": parsed.residency,
            "currency": parsed.currency,
            "language": parsed.lang,
            "timeout": parsed.timeout,
        }
        if parsed.hids:
            body["hids"] = ",".join(str(hid) for hid in parsed.hids)

        raw, response = await self._call("search_hotels", SEARCH_PATH, body=body, timeout=float(parsed.timeout))
        search_hash = raw.get("search_hash")
        hotels = []
        for item in raw.get("hotels") or []:
            price = item.get("price") or {}
            hotels.append(
                SerpHotel(
                    hid=item.get("hid"),
                    name=item.get("name"),
                    stars=item.get("stars"),
                    price=_to_decimal(price.get("show_amount", price.get("total"))),
                    currency=price.get("currency"),
                    search_hash=search_hash,
                )
            )
        return SearchResult(hotels=hotels, search_hash=search_hash, rate_limit=response.rate_limit)

    async def search_region(self, payload: dict[str, Any]) -> dict[str, Any]:
        raw, _ = await self._call("search_region", SEARCH_REGION_PATH, body=payload, timeout=SERP_TIMEOUT_SECONDS)
        return raw

    async def search_geo(self, payload: dict[str, Any]) -> dict[str, Any]:
        raw, _ = await self._call("search_geo", SEARCH_GEO_PATH, body=payload, timeout=SERP_TIMEOUT_SECONDS)
        return raw

    async def get_hotel_page(self, params: HotelPageParams | dict[str, Any]) -> HotelPage:
        parsed = validate_params(HotelPageParams, params)
        body: dict[str, Any] = {
            "checkin": parsed.checkin,
            "checkout": parsed.checkout,
            "guests": [g.model_dump(exclude_none=True) for g in parsed.guests],
            "currency": parsed.currency,
            "lang": parsed.lang,
            "timeout": parsed.timeout,
        }
        if parsed.hid is not None:
            body["hids"] = [parsed.hid]
        if parsed.hotel_id:
            body["hotel_id"] = parsed.hotel_id
        if parsed.search_hash:
            body["search_hash"] = parsed.search_hash

        raw, response = await self._call("get_hotel_page", HOTEL_PAGE_PATH, body=body, timeout=float(parsed.timeout))
        return HotelPage(data=raw, rates=self._extract_rates(raw), rate_limit=response.rate_limit)

    @staticmethod
    def _extract_rates(raw: dict[str, Any]) -> list[dict[str, Any]]:
        if isinstance(raw.get("rates"), list):
            return raw["rates"]
        rates: list[dict[str, Any]] = []
        for hotel in raw.get("hotels") or []:
            if isinstance(hotel, dict):
                rates.extend(r for r in hotel.get("rates") or [] if isinstance(r, dict))
        return rates

    async def quote(
        self,
        book_hash: str,
        currency: str | None = None,
        price_increase_percent: float | None = None,
    ) -> RateQuote:
        raw_params: dict[str, Any] = {"book_hash": book_hash}
        if currency is not None:
            raw_params["currency"] = currency
        if price_increase_percent is not None:
            raw_params["price_increase_percent"] = price_increase_percent
        parsed = validate_params(PrebookParams, raw_params)

        raw, response = await self._call(
            "quote",
            PREBOOK_PATH,
            body={
                "book_hash": parsed.book_hash,
                "price_increase_percent": parsed.price_increase_percent,
                "currency": parsed.currency,
            },
            timeout=PREBOOK_TIMEOUT_SECONDS,
        )
        try:
            total = Money.from_supplier(raw.get("price"), raw.get("currency") or parsed.currency)
        except ValueError as exc:
            raise InvalidResponseError(
                f"Invalid prebook price from ETG: {exc}",
                raw=raw,
                http_status=response.status_code,
                rate_limit=response.rate_limit,
                capability="quote",
            ) from exc
        daily = [
            DailyPrice(date=str(day.get("date")), price=_to_decimal(day.get("price")) or Decimal("0"))
            for day in raw.get("daily") or []
            if isinstance(day, dict)
        ]
        return RateQuote(
            book_hash=raw.get("book_hash") or parsed.book_hash,
            total=total,
            daily=daily,
            cancellation_policy=raw.get("cancellation_policy"),
            match_hash=raw.get("match_hash"),
            raw=raw,
            rate_limit=response.rate_limit,
        )

    async def start_booking(self, params: BookingParams | dict[str, Any]) -> BookingOutcome:
        parsed = validate_params(BookingParams, params)
        form_body = {
            "book_hash": parsed.book_hash,
            "guest": {
                "name": parsed.guest_name,
                "email": parsed.guest_email,
                "phone": parsed.guest_phone,
            },
            "guests": [g.model_dump(exclude_none=True) for g in parsed.guests] if parsed.guests else None,
            "nationality": parsed.nationality,
            "notes": parsed.special_requests,
            "payment": parsed.payment.model_dump(exclude_none=True) if parsed.payment else None,
            "return_path": str(parsed.return_path) if parsed.return_path else None,
        }
        form, _ = await self._call("start_booking", BOOKING_FORM_PATH, body=form_body, timeout=BOOKING_TIMEOUT_SECONDS)

        form_process_id = _str_or_none(form.get("process_id"))
        form_order_id = _str_or_none(form.get("order_id"))
        if form_order_id and form.get("status"):
            return TerminalBooking(order_id=form_order_id, status=str(form["status"]), process_id=form_process_id)

        finish_body: dict[str, Any] = {}
        if form_process_id:
            finish_body["process_id"] = form_process_id
        if form_order_id:
            finish_body["order_id"] = form_order_id

        finish_response = await self._request(
            "start_booking", BOOKING_FINISH_PATH, body=finish_body, timeout=BOOKING_TIMEOUT_SECONDS
        )
        finish = self._envelope(finish_response)
        if finish is None:
            logger.warning(
                "ETG booking finish returned no data, booking not yet finalized",
                extra={"process_id": form_process_id, "order_id": form_order_id},
            )
            return PendingBooking(process_id=form_process_id, order_id=form_order_id, status=form.get("status"))

        finish_process_id = _str_or_none(finish.get("process_id")) or form_process_id
        finish_order_id = _str_or_none(finish.get("order_id")) or form_order_id
        if finish_order_id and finish.get("status"):
            return TerminalBooking(order_id=finish_order_id, status=str(finish["status"]), process_id=finish_process_id)
        return PendingBooking(
            process_id=finish_process_id,
            order_id=finish_order_id,
            status=finish.get("status"),
            finalized=True,
        )

    async def poll_finish(self, process_or_order_id: str) -> FinishStatus:
        if not process_or_order_id:
            raise ValidationError(fields=["process_or_order_id"], message="poll_finish requires an id")
        raw, response = await self._call(
            "poll_finish",
            BOOKING_FINISH_STATUS_PATH,
            body={"process_id": process_or_order_id, "order_id": process_or_order_id},
            timeout=FINISH_STATUS_TIMEOUT_SECONDS,
        )
        status = raw.get("status")
        return FinishStatus(
            order_id=_str_or_none(raw.get("order_id")),
            status=str(status) if status is not None else None,
            details=raw.get("details"),
            rate_limit=response.rate_limit,
        )

    async def dump_static_catalog(self) -> HotelDumpMeta:
        cached = await self._cache.get(HOTEL_DUMP_CACHE_KEY)
        if isinstance(cached, dict) and "file_url" in cached:
            return HotelDumpMeta(generated_at=cached.get("generated_at") or "", file_url=cached["file_url"])

        raw, _ = await self._call("dump_static_catalog", HOTEL_DUMP_PATH, method="GET", timeout=DUMP_TIMEOUT_SECONDS)
        meta = HotelDumpMeta(
            generated_at=raw.get("generated_at") or datetime.now(timezone.utc).isoformat(),
            file_url=raw.get("file_url") or raw.get("url") or "",
        )
        await self._cache.set(
            HOTEL_DUMP_CACHE_KEY,
            {"generated_at": meta.generated_at, "file_url": meta.file_url},
            ttl_seconds=HOTEL_DUMP_CACHE_TTL_SECONDS,
        )
        return meta

    async def incremental_dump(self, since: str | None = None) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if since:
            body["since"] = since
        raw, _ = await self._call(
            "incremental_dump", HOTEL_INCREMENTAL_DUMP_PATH, body=body, timeout=DUMP_TIMEOUT_SECONDS
        )
        return raw

    async def get_hotel_info(self, hid: int | None = None, hotel_id: str | None = None) -> Any:
        if not hid and not hotel_id:
            raise ValidationError(fields=["hid", "hotel_id"], message="get_hotel_info requires hid or hotel_id")
        body: dict[str, Any] = {}
        if hid:
            body["hids"] = [hid]
        if hotel_id:
            body["hotel_id"] = hotel_id
        raw, _ = await self._call("get_hotel_info", HOTEL_INFO_PATH, body=body, timeout=HOTEL_INFO_TIMEOUT_SECONDS)
        return raw
