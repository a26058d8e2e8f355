from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from foodmarket import main
from foodmarket.core.database import get_db
from foodmarket.models.voucher import DISCOUNT_FIXED_AMOUNT
from tests.fixtures_data import OTHER_RESTAURANT_ID, RESTAURANT_ID, add_voucher, build_session, seed_marketplace

# a rota usa o relógio real; janela larga o bastante para não expirar
WIDE_WINDOW = {
    "valid_from": datetime(2000, 1, 1, tzinfo=timezone.utc),
    "valid_until": datetime(2100, 1, 1, tzinfo=timezone.utc),
}


@pytest.fixture()
def client_and_db(monkeypatch):
    monkeypatch.setattr(main, "_startup_tasks", lambda: None)
    db = build_session()
    seed_marketplace(db)
    main.app.dependency_overrides[get_db] = lambda: db
    with TestClient(main.app) as test_client:
        yield test_client, db
    main.app.dependency_overrides.clear()


def test_validate_voucher_is_public_and_returns_prices(client_and_db):
    client, db = client_and_db
    add_voucher(db, code="WELCOME10", **WIDE_WINDOW)

    response = client.post(
        "/api/vouchers/validate",
        json={"voucher_code": "welcome10", "restaurant_id": RESTAURANT_ID, "order_amount": 25.50},
    )

    assert response.status_code == 200
    assert response.json() == {
        "valid": True,
        "voucher": {"code": "WELCOME10", "discount_type": "percentage", "discount_value": 10.0},
        "message": "Voucher is valid",
        "discount_amount": 2.55,
        "final_price": 22.95,
    }


def test_validate_voucher_zero_final_price(client_and_db):
    client, db = client_and_db
    add_voucher(db, code="FIVE", discount_type=DISCOUNT_FIXED_AMOUNT, discount_value=Decimal("5.00"), **WIDE_WINDOW)

    response = client.post("/api/vouchers/validate", json={"voucher_code": "FIVE", "order_amount": 3.00})

    assert response.status_code == 200
    assert response.json()["valid"] is False
    assert response.json()["message"] == "Final price is 0"


def test_validate_voucher_without_amount_is_invalid(client_and_db):
    client, db = client_and_db
    add_voucher(db, code="WELCOME10", **WIDE_WINDOW)

    response = client.post("/api/vouchers/validate", json={"voucher_code": "WELCOME10"})

    assert response.status_code == 200
    assert response.json()["valid"] is False
    assert response.json()["message"] == "Voucher is invalid"
    assert response.json()["voucher"]["code"] == "WELCOME10"


def test_validate_voucher_reports_engine_message(client_and_db):
    client, db = client_and_db
    add_voucher(db, code="LOCAL", restaurant_id=OTHER_RESTAURANT_ID, **WIDE_WINDOW)
    add_voucher(db, code="USEDUP", usage_limit=5, usage_count=5, **WIDE_WINDOW)

    wrong_restaurant = client.post(
        "/api/vouchers/validate",
        json={"voucher_code": "LOCAL", "restaurant_id": RESTAURANT_ID, "order_amount": 20},
    )
    used_up = client.post("/api/vouchers/validate", json={"voucher_code": "USEDUP", "order_amount": 20})

    assert wrong_restaurant.json()["valid"] is False
    assert wrong_restaurant.json()["message"] == "Voucher not valid for this restaurant"
    assert used_up.json()["valid"] is False
    assert used_up.json()["message"] == "Usage limit reached"


def test_validate_voucher_errors(client_and_db):
    client, _db = client_and_db

    missing_code = client.post("/api/vouchers/validate", json={})
    unknown = client.post("/api/vouchers/validate", json={"voucher_code": "NOPE"})
    negative = client.post("/api/vouchers/validate", json={"voucher_code": "NOPE", "order_amount": -1})

    assert missing_code.status_code == 422
    assert missing_code.json() == {"error": "Validation failed", "errors": ["Voucher code is required"]}
    assert unknown.status_code == 404
    assert unknown.json() == {"error": "Voucher not found"}
    assert negative.status_code == 422
