from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Union

from app.application.validators import BookingParams, HotelPageParams, SearchParams
from app.domain.value_objects.money import Money
from app.domain.value_objects.rate_limit import RateLimitSnapshot

SUCCESS_STATUSES = frozenset({"ok", "completed", "confirmed", "success"})
FAILURE_STATUSES = frozenset({"error", "failed", "cancelled", "rejected"})


def is_terminal_status(status: str | None) -> bool:
    return (status or "").lower() in SUCCESS_STATUSES | FAILURE_STATUSES


def is_success_status(status: str | None) -> bool:
    return (status or "").lower() in SUCCESS_STATUSES


@dataclass
class SerpHotel:
    hid: int | None
    name: str | None
    stars: int | None = None
    price: Decimal | None = None
    currency: str | None = None
    search_hash: str | None = None


@dataclass
class SearchResult:
    hotels: list[SerpHotel]
    search_hash: str | None = None
    rate_limit: RateLimitSnapshot = field(default_factory=RateLimitSnapshot.empty)


@dataclass
class HotelPage:
    data: dict[str, Any]
    rates: list[dict[str, Any]]
    rate_limit: RateLimitSnapshot = field(default_factory=RateLimitSnapshot.empty)

    @property
    def first_book_hash(self) -> str | None:
        for rate in self.rates:
            if isinstance(rate, dict) and rate.get("book_hash"):
                return rate["book_hash"]
        return None


@dataclass
class DailyPrice:
    date: str
    price: Decimal


@dataclass
class RateQuote:
    book_hash: str
    total: Money
    daily: list[DailyPrice]
    cancellation_policy: Any = None
    match_hash: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)
    rate_limit: RateLimitSnapshot = field(default_factory=RateLimitSnapshot.empty)


@dataclass
class TerminalBooking:
    """The supplier already reported a final status for the order."""

    order_id: str
    status: str
    process_id: str | None = None

    @property
    def succeeded(self) -> bool:
        return is_success_status(self.status)


@dataclass
class PendingBooking:
    """The booking is in flight; callers must poll with process_id / order_id."""

    process_id: str | None = None
    order_id: str | None = None
    status: str | None = None
    finalized: bool = False


BookingOutcome = Union[TerminalBooking, PendingBooking]


@dataclass
class FinishStatus:
    order_id: str | None
    status: str | None
    details: Any = None
    rate_limit: RateLimitSnapshot = field(default_factory=RateLimitSnapshot.empty)

    @property
    def is_terminal(self) -> bool:
        return is_terminal_status(self.status)

    @property
    def succeeded(self) -> bool:
        return is_success_status(self.status)


@dataclass
class HotelDumpMeta:
    generated_at: str
    file_url: str


class SupplierGateway(ABC):
    @abstractmethod
    async def search_hotels(self, params: SearchParams | dict[str, Any]) -> SearchResult:
        pass

    @abstractmethod
    async def search_region(self, payload: dict[str, Any]) -> dict[str, Any]:
        """
        Region search. The payload is forwarded as is; returns the `data` envelope.
        """
        pass

    @abstractmethod
    async def search_geo(self, payload: dict[str, Any]) -> dict[str, Any]:
        pass

    @abstractmethod
    async def get_hotel_page(self, params: HotelPageParams | dict[str, Any]) -> HotelPage:
        pass

    @abstractmethod
    async def quote(
        self,
        book_hash: str,
        currency: str | None = None,
        price_increase_percent: float | None = None,
    ) -> RateQuote:
        """
        Prebook a rate. Never cached: the price can change between calls.
        """
        pass

    @abstractmethod
    async def start_booking(self, params: BookingParams | dict[str, Any]) -> BookingOutcome:
        """
        Two-phase booking (form, then finish when the form is not final).
        """
        pass

    @abstractmethod
    async def poll_finish(self, process_or_order_id: str) -> FinishStatus:
        pass

    @abstractmethod
    async def dump_static_catalog(self) -> HotelDumpMeta:
        pass

    @abstractmethod
    async def incremental_dump(self, since: str | None = None) -> dict[str, Any]:
        pass

    @abstractmethod
    async def get_hotel_info(self, hid: int | None = None, hotel_id: str | None = None) -> Any:
        pass
