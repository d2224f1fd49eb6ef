import pytest
from fastapi.testclient import TestClient

from pos_terminal.main import create_app
from pos_terminal.services.terminal_service import TerminalService
from pos_terminal.utils.config import DevelopmentConfig


@pytest.fixture
def client(catalog, payments, connector):
    config = DevelopmentConfig(AUTO_RESET_DELAY=5.0, SCANNER_RECONNECT_DELAY=0.05)
    service = TerminalService.from_settings(config, catalog=catalog, payments=payments, connector=connector)
    with TestClient(create_app(terminal_service=service)) as test_client:
        yield test_client


def _scan(client, term, variant="customer"):
    return client.post(f"/api/terminals/{variant}/scan", json={"term": term})


def test_lists_both_terminals(client):
    response = client.get("/api/terminals")
    assert response.status_code == 200
    assert [s["terminal"] for s in response.json()] == ["customer", "staff"]


def test_unknown_terminal_is_404(client):
    response = client.get("/api/terminals/kiosk")
    assert response.status_code == 404


def test_scan_twice_shows_totals(client):
    _scan(client, "A1")
    response = _scan(client, "a1")

    body = response.json()
    assert body["accepted"] is True
    session = body["session"]
    assert session["state"] == "scanning"
    assert session["lines"][0]["quantity"] == 2
    assert session["subtotal"] == "3.00"
    assert session["tax"] == "0.24"
    assert session["total"] == "3.24"


def test_scan_miss_reports_error(client):
    response = _scan(client, "nonexistent")

    body = response.json()
    assert response.status_code == 200
    assert body["accepted"] is False
    assert body["session"]["last_error"] == "Product not found: nonexistent"
    assert body["session"]["state"] == "idle"


def test_empty_term_is_rejected(client):
    response = _scan(client, "")
    assert response.status_code == 422


def test_quantity_edit_and_remove(client):
    _scan(client, "A1")
    _scan(client, "B2")

    response = client.put("/api/terminals/customer/items/1", json={"quantity": 4})
    assert response.json()["session"]["item_count"] == 5

    response = client.delete("/api/terminals/customer/items/2")
    session = response.json()["session"]
    assert [line["sku"] for line in session["lines"]] == ["A1"]

    response = client.put("/api/terminals/customer/items/1", json={"quantity": 0})
    assert response.json()["session"]["state"] == "idle"


def test_payment_then_new_transaction(client, catalog):
    _scan(client, "A1")
    _scan(client, "A1")

    response = client.post("/api/terminals/customer/payment", json={"method": "card"})
    body = response.json()
    assert body["accepted"] is True
    session = body["session"]
    assert session["state"] == "success"
    assert session["payment_snapshot_total"] == "3.24"
    assert session["receipt"]["total"] == "3.24"
    assert session["receipt"]["method"] == "card"
    assert catalog.get("1").quantity_on_hand == 118

    response = client.post("/api/terminals/customer/new-transaction")
    session = response.json()["session"]
    assert session["state"] == "idle"
    assert session["payment_snapshot_total"] == "0.00"
    assert session["receipt"] is None


def test_payment_with_empty_cart(client, payments):
    response = client.post("/api/terminals/customer/payment", json={"method": "cash"})
    body = response.json()
    assert body["accepted"] is False
    assert body["session"]["last_error"].startswith("Cart is empty")
    assert payments.calls == []


def test_invalid_payment_method(client):
    response = client.post("/api/terminals/customer/payment", json={"method": "barter"})
    assert response.status_code == 422


def test_customer_name_only_on_staff(client):
    response = client.put("/api/terminals/customer/customer", json={"name": "Ada"})
    assert response.status_code == 400

    response = client.put("/api/terminals/staff/customer", json={"name": " Ada "})
    assert response.json()["session"]["customer_name"] == "Ada"


def test_quick_add_limits(client):
    customer = client.get("/api/terminals/customer/quick-add").json()
    staff = client.get("/api/terminals/staff/quick-add").json()

    assert [p["sku"] for p in customer] == ["A1", "B2", "M3"]
    assert len(staff) == 4
    assert customer[0]["price"] == "1.50"


def test_scanner_reconnect_endpoint(client, connector):
    response = client.post("/api/terminals/customer/scanner/reconnect")
    assert response.status_code == 200
    assert response.json()["accepted"] is True
    assert "ws://localhost:8765" in connector.urls


def test_request_id_is_echoed_and_logged(client, caplog):
    with caplog.at_level("INFO", logger="pos_terminal.requests"):
        response = client.get("/api/terminals/kiosk", headers={"X-Request-ID": "abc123"})

    assert response.headers["X-Request-ID"] == "abc123"
    records = [r for r in caplog.records if r.name == "pos_terminal.requests"]
    assert records and records[-1].request_id == "abc123"
    assert records[-1].duration_ms >= 0


def test_reconnect_rejected_when_scanner_disabled(catalog, payments, connector):
    config = DevelopmentConfig(SCANNER_ENABLED=False)
    service = TerminalService.from_settings(config, catalog=catalog, payments=payments, connector=connector)
    with TestClient(create_app(terminal_service=service)) as test_client:
        response = test_client.post("/api/terminals/staff/scanner/reconnect")

    assert response.status_code == 400
    assert connector.urls == []
