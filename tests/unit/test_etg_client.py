import json

import httpx
import pytest
import respx

from app.domain.errors import (
    InvalidResponseError,
    PermanentServerError,
    RateLimitedError,
    SupplierNetworkError,
    SupplierTimeoutError,
    TransientServerError,
)
from app.infrastructure.gateways.etg_client import EtgClient, EtgCredentials

BASE_URL = "https://etg.test"
PATH = "/api/b2b/v3/hotel/prebook"
RATE_HEADERS = {
    "X-RateLimit-RequestsNumber": "30",
    "X-RateLimit-Remaining": "29",
    "X-RateLimit-Reset": "60",
}


def test_credentials_require_both_halves():
    with pytest.raises(ValueError):
        EtgCredentials(key_id="", api_key="secret")
    with pytest.raises(ValueError):
        EtgCredentials(key_id="1234", api_key="")


def test_authorization_header_is_basic():
    credentials = EtgCredentials(key_id="user", api_key="pass")
    assert credentials.authorization_header == "Basic dXNlcjpwYXNz"


def test_backoff_grows_exponentially_and_is_capped(etg_client: EtgClient):
    assert etg_client.backoff_seconds(1) == pytest.approx(0.01)
    assert etg_client.backoff_seconds(2) == pytest.approx(0.02)
    assert etg_client.backoff_seconds(3) == pytest.approx(0.04)
    slow = EtgClient(credentials=EtgCredentials("a", "b"), retry_base_ms=5000)
    assert slow.backoff_seconds(4) == 10.0


@pytest.mark.asyncio
async def test_success_returns_data_and_rate_limit(etg_client: EtgClient):
    with respx.mock(assert_all_called=True) as router:
        route = router.post(f"{BASE_URL}{PATH}").respond(
            status_code=200, json={"data": {"ok": True}}, headers=RATE_HEADERS
        )
        response = await etg_client.call(PATH, body={"book_hash": "h-1"})

    assert response.data == {"data": {"ok": True}}
    assert response.rate_limit.limit == 30
    assert response.rate_limit.remaining == 29
    assert response.rate_limit.reset_seconds == 60
    request = route.calls.last.request
    assert request.headers["Authorization"].startswith("Basic ")
    assert json.loads(request.content) == {"book_hash": "h-1"}


@pytest.mark.asyncio
async def test_transient_failures_then_success(etg_client: EtgClient):
    with respx.mock(assert_all_called=True) as router:
        route = router.post(f"{BASE_URL}{PATH}").mock(
            side_effect=[
                httpx.Response(503),
                httpx.Response(502, json={"error": "bad gateway"}),
                httpx.Response(200, json={"data": {"price": "240"}}),
            ]
        )
        response = await etg_client.call(PATH, body={})

    assert route.call_count == 3
    assert response.data["data"]["price"] == "240"


@pytest.mark.asyncio
async def test_permanent_error_is_not_retried(etg_client: EtgClient):
    with respx.mock(assert_all_called=True) as router:
        route = router.post(f"{BASE_URL}{PATH}").respond(status_code=400, json={"error": "invalid book_hash"})
        with pytest.raises(PermanentServerError) as exc_info:
            await etg_client.call(PATH, body={})

    assert route.call_count == 1
    assert exc_info.value.http_status == 400
    assert exc_info.value.payload == {"error": "invalid book_hash"}


@pytest.mark.asyncio
async def test_retries_exhausted_raises_last_error(etg_client: EtgClient):
    with respx.mock(assert_all_called=True) as router:
        route = router.post(f"{BASE_URL}{PATH}").respond(status_code=500, text="boom")
        with pytest.raises(TransientServerError) as exc_info:
            await etg_client.call(PATH, body={})

    # first attempt + 3 retries
    assert route.call_count == 4
    assert exc_info.value.payload == {"status": 500, "body": "boom"}


@pytest.mark.asyncio
async def test_per_call_retry_override(etg_client: EtgClient):
    with respx.mock(assert_all_called=True) as router:
        route = router.post(f"{BASE_URL}{PATH}").respond(status_code=503)
        with pytest.raises(TransientServerError):
            await etg_client.call(PATH, body={}, retries=0)

    assert route.call_count == 1


@pytest.mark.asyncio
async def test_rate_limited_carries_snapshot_and_waits_for_reset():
    delays = []

    async def record_sleep(seconds: float) -> None:
        delays.append(seconds)

    client = EtgClient(
        credentials=EtgCredentials("1234", "secret"),
        base_url=BASE_URL,
        max_retries=1,
        retry_base_ms=10,
        sleep=record_sleep,
    )
    with respx.mock(assert_all_called=True) as router:
        router.post(f"{BASE_URL}{PATH}").respond(
            status_code=429,
            headers={"X-RateLimit-Limit": "10", "X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "3"},
        )
        with pytest.raises(RateLimitedError) as exc_info:
            await client.call(PATH, body={})

    assert exc_info.value.rate_limit.limit == 10
    assert exc_info.value.rate_limit.remaining == 0
    assert delays == [3.0]


@pytest.mark.asyncio
async def test_timeout_is_retried_then_raised(etg_client: EtgClient):
    with respx.mock(assert_all_called=True) as router:
        route = router.post(f"{BASE_URL}{PATH}").mock(side_effect=httpx.ReadTimeout("slow"))
        with pytest.raises(SupplierTimeoutError) as exc_info:
            await etg_client.call(PATH, body={}, timeout=2)

    assert route.call_count == 4
    assert exc_info.value.timeout_seconds == 2


@pytest.mark.asyncio
async def test_network_error_is_retried(etg_client: EtgClient):
    with respx.mock(assert_all_called=True) as router:
        route = router.post(f"{BASE_URL}{PATH}").mock(
            side_effect=[httpx.ConnectError("refused"), httpx.Response(200, json={"data": {}})]
        )
        response = await etg_client.call(PATH, body={})

    assert route.call_count == 2
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_network_error_exhausted(etg_client: EtgClient):
    with respx.mock(assert_all_called=True) as router:
        router.post(f"{BASE_URL}{PATH}").mock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(SupplierNetworkError):
            await etg_client.call(PATH, body={}, retries=1)


@pytest.mark.asyncio
async def test_invalid_json_on_success_is_not_retried(etg_client: EtgClient):
    with respx.mock(assert_all_called=True) as router:
        route = router.post(f"{BASE_URL}{PATH}").respond(status_code=200, text="<html>oops</html>")
        with pytest.raises(InvalidResponseError) as exc_info:
            await etg_client.call(PATH, body={})

    assert route.call_count == 1
    assert exc_info.value.raw == "<html>oops</html>"


@pytest.mark.asyncio
async def test_get_sends_no_body(etg_client: EtgClient):
    with respx.mock(assert_all_called=True) as router:
        route = router.get(f"{BASE_URL}/api/b2b/v3/hotel/info/dump/").respond(status_code=200, json={"data": {}})
        await etg_client.call("/api/b2b/v3/hotel/info/dump/", method="GET", body={"ignored": True})

    assert route.calls.last.request.content == b""
