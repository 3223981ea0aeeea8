from fastapi.testclient import TestClient


def _prebook(client: TestClient, **overrides):
    payload = {
        "checkIn": "2026-03-01",
        "checkOut": "2026-03-03",
        "guestsCount": 2,
        "bookHash": "H123",
        "totalPrice": "240.00",
        "guestName": "Ann Lee",
        "guestEmail": "ann@example.com",
    }
    payload.update(overrides)
    return client.post("/api/v1/bookings/prebook", json=payload)


def test_prebook_creates_pending_reservation(client: TestClient):
    res = _prebook(client)
    assert res.status_code == 200
    body = res.json()
    assert body["ok"] is True
    assert body["bookHash"] == "H123"
    assert body["prebook"]["book_hash"] == "H123"

    view = client.get(f"/api/v1/bookings/{body['localBookingId']}")
    assert view.status_code == 200
    data = view.json()
    assert data["booking_status"] == "pending_payment"
    assert data["payment_status"] == "pending"
    assert data["total_price"] == "240.00"
    assert data["price_per_night"] == "120.00"
    assert data["currency"] == "BYN"


def test_prebook_without_book_hash_uses_first_rate(client: TestClient):
    res = _prebook(client, bookHash=None, hid=555)
    assert res.status_code == 200
    assert res.json()["bookHash"] == "stub-555"


def test_prebook_rejects_invalid_dates(client: TestClient):
    res = _prebook(client, checkIn="03/01/2026")
    assert res.status_code == 400
    assert "checkIn" in res.json()["fields"]


def test_prebook_rejects_inverted_stay(client: TestClient):
    res = _prebook(client, checkIn="2026-03-05")
    assert res.status_code == 400
    assert res.json()["code"] == "VALIDATION_ERROR"


def test_unknown_booking_is_404(client: TestClient):
    res = client.get("/api/v1/bookings/does-not-exist")
    assert res.status_code == 404
    assert res.json()["code"] == "RESERVATION_NOT_FOUND"


def test_health_endpoints(client: TestClient):
    assert client.get("/health").json()["status"] == "ok"
    assert client.get("/health/live").status_code == 200
    ready = client.get("/health/ready")
    assert ready.status_code == 200
    assert ready.json()["checks"]["database"] == "in_memory"
