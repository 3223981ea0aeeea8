import json
from decimal import Decimal

import httpx
import pytest
import respx

from app.application.interfaces.supplier_gateway import PendingBooking, TerminalBooking
from app.domain.errors import InvalidResponseError, PermanentServerError, ValidationError
from app.infrastructure.cache.memory_tier import MemoryCacheTier
from app.infrastructure.cache.tiered_cache import TieredCache
from app.infrastructure.gateways.etg_client import EtgClient
from app.infrastructure.gateways.etg_service import (
    BOOKING_FINISH_PATH,
    BOOKING_FINISH_STATUS_PATH,
    BOOKING_FORM_PATH,
    HOTEL_DUMP_CACHE_KEY,
    HOTEL_DUMP_PATH,
    HOTEL_PAGE_PATH,
    PREBOOK_PATH,
    SEARCH_GEO_PATH,
    SEARCH_PATH,
    SEARCH_REGION_PATH,
    EtgSupplierService,
)

BASE_URL = "https://etg.test"

BOOKING = {"book_hash": "h-1", "guest_name": "Ann Lee", "guest_email": "ann@example.com"}


@pytest.fixture
def cache() -> TieredCache:
    return TieredCache([MemoryCacheTier()])


@pytest.fixture
def service(etg_client: EtgClient, cache: TieredCache) -> EtgSupplierService:
    return EtgSupplierService(client=etg_client, cache=cache)


@pytest.mark.asyncio
async def test_search_maps_hotels(service: EtgSupplierService):
    with respx.mock(assert_all_called=True) as router:
        route = router.post(f"{BASE_URL}{SEARCH_PATH}").respond(
            json={
                "data": {
                    "search_hash": "sh-1",
                    "hotels": [{"hid": 123, "name": "Minsk Inn", "stars": 4, "price": {"show_amount": 99.5, "currency": "BYN"}}],
                }
            }
        )
        result = await service.search_hotels(
            {"checkin": "2026-03-01", "checkout": "2026-03-03", "guests": [{"adults": 2}], "hids": [123, 456]}
        )

    assert result.search_hash == "sh-1"
    assert result.hotels[0].hid == 123
    assert result.hotels[0].price == Decimal("99.5")
    sent = json.loads(route.calls.last.request.content)
    assert sent["hids"] == "123,456"
    assert sent["currency"] == "BYN"
    assert sent["language"] == "ru"
    assert sent["timeout"] == 30


@pytest.mark.asyncio
async def test_invalid_params_never_reach_the_network(service: EtgSupplierService):
    with respx.mock(assert_all_called=False) as router:
        route = router.post(f"{BASE_URL}{SEARCH_PATH}").respond(json={"data": {}})
        with pytest.raises(ValidationError):
            await service.search_hotels({"checkin": "2026-03-01", "checkout": "2026-03-03", "guests": []})
        with pytest.raises(ValidationError):
            await service.quote("")
        with pytest.raises(ValidationError):
            await service.get_hotel_info()

    assert route.call_count == 0


@pytest.mark.asyncio
async def test_missing_envelope_is_invalid_response(service: EtgSupplierService):
    with respx.mock(assert_all_called=True) as router:
        router.post(f"{BASE_URL}{HOTEL_PAGE_PATH}").respond(json={"status": "ok"})
        with pytest.raises(InvalidResponseError) as exc_info:
            await service.get_hotel_page(
                {"checkin": "2026-03-01", "checkout": "2026-03-03", "guests": [{"adults": 1}], "hid": 123}
            )

    assert exc_info.value.capability == "get_hotel_page"
    assert exc_info.value.raw == {"status": "ok"}


@pytest.mark.asyncio
async def test_hotel_page_exposes_first_book_hash(service: EtgSupplierService):
    with respx.mock(assert_all_called=True) as router:
        router.post(f"{BASE_URL}{HOTEL_PAGE_PATH}").respond(
            json={"data": {"hotels": [{"id": "minsk_inn", "rates": [{"book_hash": "h-first"}, {"book_hash": "h-2"}]}]}}
        )
        page = await service.get_hotel_page(
            {"checkin": "2026-03-01", "checkout": "2026-03-03", "guests": [{"adults": 1}], "hid": 123}
        )

    assert page.first_book_hash == "h-first"


@pytest.mark.asyncio
async def test_quote_maps_prebook(service: EtgSupplierService):
    with respx.mock(assert_all_called=True) as router:
        route = router.post(f"{BASE_URL}{PREBOOK_PATH}").respond(
            json={
                "data": {
                    "book_hash": "h-1",
                    "price": 240,
                    "currency": "BYN",
                    "daily": [{"date": "2026-03-01", "price": 120}, {"date": "2026-03-02", "price": 120}],
                    "match_hash": "m-1",
                }
            }
        )
        quote = await service.quote("h-1")

    assert quote.total.amount == Decimal("240")
    assert quote.total.currency_code == "BYN"
    assert [d.price for d in quote.daily] == [Decimal("120"), Decimal("120")]
    assert quote.match_hash == "m-1"
    assert json.loads(route.calls.last.request.content)["price_increase_percent"] == 0


@pytest.mark.asyncio
async def test_quote_is_never_cached(service: EtgSupplierService):
    with respx.mock(assert_all_called=True) as router:
        route = router.post(f"{BASE_URL}{PREBOOK_PATH}").respond(
            json={"data": {"book_hash": "h-1", "price": 240, "currency": "BYN"}}
        )
        await service.quote("h-1")
        await service.quote("h-1")

    assert route.call_count == 2


@pytest.mark.asyncio
async def test_start_booking_form_already_final(service: EtgSupplierService):
    with respx.mock(assert_all_called=False) as router:
        router.post(f"{BASE_URL}{BOOKING_FORM_PATH}").respond(json={"data": {"order_id": 77, "status": "ok"}})
        finish = router.post(f"{BASE_URL}{BOOKING_FINISH_PATH}").respond(json={"data": {}})
        outcome = await service.start_booking(BOOKING)

    assert outcome == TerminalBooking(order_id="77", status="ok")
    assert outcome.succeeded
    assert finish.call_count == 0


@pytest.mark.asyncio
async def test_start_booking_finishes_with_form_ids(service: EtgSupplierService):
    with respx.mock(assert_all_called=True) as router:
        router.post(f"{BASE_URL}{BOOKING_FORM_PATH}").respond(json={"data": {"process_id": "p-1"}})
        finish = router.post(f"{BASE_URL}{BOOKING_FINISH_PATH}").respond(
            json={"data": {"order_id": "o-1", "status": "processing"}}
        )
        outcome = await service.start_booking(BOOKING)

    assert json.loads(finish.calls.last.request.content) == {"process_id": "p-1"}
    assert isinstance(outcome, TerminalBooking)
    assert outcome.order_id == "o-1"
    assert outcome.process_id == "p-1"
    assert not outcome.succeeded


@pytest.mark.asyncio
async def test_start_booking_finish_without_status_is_pending(service: EtgSupplierService):
    with respx.mock(assert_all_called=True) as router:
        router.post(f"{BASE_URL}{BOOKING_FORM_PATH}").respond(json={"data": {"process_id": "p-1"}})
        router.post(f"{BASE_URL}{BOOKING_FINISH_PATH}").respond(json={"data": {"order_id": "o-1"}})
        outcome = await service.start_booking(BOOKING)

    assert outcome == PendingBooking(process_id="p-1", order_id="o-1", status=None, finalized=True)


@pytest.mark.asyncio
async def test_start_booking_finish_missing_envelope_returns_form_ids(service: EtgSupplierService):
    with respx.mock(assert_all_called=True) as router:
        router.post(f"{BASE_URL}{BOOKING_FORM_PATH}").respond(json={"data": {"process_id": "p-1"}})
        router.post(f"{BASE_URL}{BOOKING_FINISH_PATH}").respond(json={"status": "accepted"})
        outcome = await service.start_booking(BOOKING)

    assert outcome == PendingBooking(process_id="p-1", order_id=None, status=None, finalized=False)


@pytest.mark.asyncio
async def test_supplier_error_is_tagged_with_capability(service: EtgSupplierService):
    with respx.mock(assert_all_called=True) as router:
        router.post(f"{BASE_URL}{BOOKING_FORM_PATH}").respond(status_code=400, json={"error": "rate expired"})
        with pytest.raises(PermanentServerError) as exc_info:
            await service.start_booking(BOOKING)

    assert exc_info.value.capability == "start_booking"
    assert exc_info.value.payload == {"error": "rate expired"}


@pytest.mark.asyncio
async def test_poll_finish_sends_id_as_both_keys(service: EtgSupplierService):
    with respx.mock(assert_all_called=True) as router:
        route = router.post(f"{BASE_URL}{BOOKING_FINISH_STATUS_PATH}").respond(
            json={"data": {"order_id": "o-1", "status": "completed", "details": {"voucher": "v"}}}
        )
        status = await service.poll_finish("p-1")

    assert json.loads(route.calls.last.request.content) == {"process_id": "p-1", "order_id": "p-1"}
    assert status.is_terminal
    assert status.succeeded
    assert status.details == {"voucher": "v"}


@pytest.mark.asyncio
async def test_dump_metadata_is_cached(service: EtgSupplierService, cache: TieredCache):
    with respx.mock(assert_all_called=True) as router:
        route = router.get(f"{BASE_URL}{HOTEL_DUMP_PATH}").respond(
            json={"data": {"url": "https://files.test/dump.zst", "generated_at": "2026-01-01T00:00:00Z"}}
        )
        first = await service.dump_static_catalog()
        second = await service.dump_static_catalog()

    assert route.call_count == 1
    assert first == second
    assert first.file_url == "https://files.test/dump.zst"
    assert await cache.get(HOTEL_DUMP_CACHE_KEY) == {
        "generated_at": "2026-01-01T00:00:00Z",
        "file_url": "https://files.test/dump.zst",
    }


@pytest.mark.asyncio
async def test_retry_then_success_through_facade(service: EtgSupplierService):
    with respx.mock(assert_all_called=True) as router:
        route = router.post(f"{BASE_URL}{PREBOOK_PATH}").mock(
            side_effect=[httpx.Response(503), httpx.Response(200, json={"data": {"price": "10", "currency": "BYN"}})]
        )
        quote = await service.quote("h-1")

    assert route.call_count == 2
    assert quote.book_hash == "h-1"


@pytest.mark.asyncio
@pytest.mark.parametrize("price", ["NaN", "Infinity", "-Infinity", "not-a-price"])
async def test_quote_rejects_non_numeric_price(service: EtgSupplierService, price: str):
    with respx.mock(assert_all_called=True) as router:
        router.post(f"{BASE_URL}{PREBOOK_PATH}").respond(json={"data": {"book_hash": "h-1", "price": price}})
        with pytest.raises(InvalidResponseError) as exc_info:
            await service.quote("h-1")

    assert exc_info.value.capability == "quote"
    assert exc_info.value.raw == {"book_hash": "h-1", "price": price}


@pytest.mark.asyncio
async def test_region_and_geo_search_forward_payload(service: EtgSupplierService):
    region_payload = {"checkin": "2026-03-01", "checkout": "2026-03-03", "region_id": 2734, "guests": [{"adults": 2}]}
    geo_payload = {"checkin": "2026-03-01", "checkout": "2026-03-03", "latitude": 53.9, "longitude": 27.56, "radius": 1000}
    with respx.mock(assert_all_called=True) as router:
        region = router.post(f"{BASE_URL}{SEARCH_REGION_PATH}").respond(json={"data": {"hotels": [{"id": "minsk_inn"}]}})
        geo = router.post(f"{BASE_URL}{SEARCH_GEO_PATH}").respond(json={"data": {"hotels": []}})
        region_result = await service.search_region(region_payload)
        geo_result = await service.search_geo(geo_payload)

    assert region_result == {"hotels": [{"id": "minsk_inn"}]}
    assert geo_result == {"hotels": []}
    assert json.loads(region.calls.last.request.content) == region_payload
    assert json.loads(geo.calls.last.request.content) == geo_payload


@pytest.mark.asyncio
async def test_region_search_without_envelope_is_invalid_response(service: EtgSupplierService):
    with respx.mock(assert_all_called=True) as router:
        router.post(f"{BASE_URL}{SEARCH_REGION_PATH}").respond(json={"error": "region not found"})
        with pytest.raises(InvalidResponseError) as exc_info:
            await service.search_region({"region_id": 1})

    assert exc_info.value.capability == "search_region"
