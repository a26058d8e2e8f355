from decimal import Decimal
from types import SimpleNamespace

import pytest

from foodmarket.core.exceptions import ConflictError, ValidationError
from foodmarket.models.voucher import DISCOUNT_FIXED_AMOUNT
from foodmarket.services.pricing import OrderPricing, compute_subtotal, validate_order_structure
from tests.fixtures_data import (
    DISH_GOULASH,
    DISH_PIZZA,
    DISH_SCHNITZEL,
    DISH_STRUDEL,
    LUNCH_TIME,
    OTHER_RESTAURANT_ID,
    RESTAURANT_ID,
    add_voucher,
    build_session,
    seed_marketplace,
)


def _pricing():
    db = build_session()
    seed_marketplace(db)
    return OrderPricing(db), db


def test_structure_collects_every_error():
    with pytest.raises(ValidationError) as exc:
        validate_order_structure(None, [])

    assert exc.value.errors == ["Restaurant ID is required", "At least one item is required"]


def test_structure_reports_items_by_position():
    items = [
        {"dish_id": 1, "quantity": 2},
        {"quantity": 1},
        {"dish_id": 3, "quantity": 0},
        {"dish_id": 4, "quantity": 100},
        {"dish_id": 5, "quantity": True},
    ]

    with pytest.raises(ValidationError) as exc:
        validate_order_structure(RESTAURANT_ID, items)

    assert exc.value.errors == [
        "Item 2: Dish ID is required",
        "Item 3: Quantity must be between 1 and 99",
        "Item 4: Quantity must be between 1 and 99",
        "Item 5: Quantity must be between 1 and 99",
    ]


def test_structure_accepts_camel_case_and_objects():
    items = [{"dishId": 1, "quantity": 99}, SimpleNamespace(dish_id=2, quantity=1)]

    assert validate_order_structure(RESTAURANT_ID, items) == [
        {"dish_id": 1, "quantity": 99},
        {"dish_id": 2, "quantity": 1},
    ]


def test_structure_rejects_wrongly_typed_fields_together():
    items = [
        {"dish_id": 1, "quantity": 2.5},
        {"dish_id": "abc", "quantity": "2"},
        {"quantity": 0},
    ]

    with pytest.raises(ValidationError) as exc:
        validate_order_structure(42, items)

    assert exc.value.errors == [
        "Restaurant ID is required",
        "Item 1: Quantity must be between 1 and 99",
        "Item 2: Dish ID must be a positive integer",
        "Item 2: Quantity must be between 1 and 99",
        "Item 3: Dish ID is required",
        "Item 3: Quantity must be between 1 and 99",
    ]


def test_compute_subtotal_rounds_after_summation():
    assert compute_subtotal([(Decimal("0.335"), 1), (Decimal("0.335"), 1)]) == Decimal("0.67")
    assert compute_subtotal([("8.10", 3)]) == Decimal("24.30")


def test_price_without_voucher():
    pricing, _db = _pricing()
    items = [{"dish_id": DISH_SCHNITZEL["id"], "quantity": 2}, {"dish_id": DISH_GOULASH["id"], "quantity": 1}]

    priced = pricing.price(RESTAURANT_ID, items, now=LUNCH_TIME)

    assert priced.subtotal == Decimal("28.00")
    assert priced.discount_amount == Decimal("0.00")
    assert priced.final_price == Decimal("28.00")
    assert priced.voucher is None
    assert [dish.id for dish in priced.dishes] == [DISH_SCHNITZEL["id"], DISH_GOULASH["id"]]
    assert priced.line_items[0] == {
        "dish_id": DISH_SCHNITZEL["id"],
        "dish_name": "Schnitzel",
        "dish_price": Decimal("8.00"),
        "quantity": 2,
    }


def test_price_with_percentage_voucher():
    pricing, db = _pricing()
    add_voucher(db)

    priced = pricing.price(RESTAURANT_ID, [{"dish_id": DISH_STRUDEL["id"], "quantity": 3}], voucher_code="SAVE10", now=LUNCH_TIME)

    assert priced.subtotal == Decimal("25.50")
    assert priced.discount_amount == Decimal("2.55")
    assert priced.final_price == Decimal("22.95")
    assert priced.final_price == priced.subtotal - priced.discount_amount


def test_price_with_fixed_voucher_larger_than_subtotal_is_zero():
    pricing, db = _pricing()
    add_voucher(db, code="BIG", discount_type=DISCOUNT_FIXED_AMOUNT, discount_value=Decimal("50.00"))

    priced = pricing.price(RESTAURANT_ID, [{"dish_id": DISH_SCHNITZEL["id"], "quantity": 1}], voucher_code="BIG", now=LUNCH_TIME)

    assert priced.discount_amount == Decimal("8.00")
    assert priced.final_price == Decimal("0.00")


def test_price_caps_percentage_voucher_at_subtotal():
    pricing, db = _pricing()
    add_voucher(db, code="HUGE", discount_value=Decimal("150"))

    priced = pricing.price(RESTAURANT_ID, [{"dish_id": DISH_SCHNITZEL["id"], "quantity": 1}], voucher_code="HUGE", now=LUNCH_TIME)

    assert priced.discount_amount == Decimal("8.00")
    assert priced.final_price == Decimal("0.00")
    assert priced.final_price == priced.subtotal - priced.discount_amount


def test_price_rejects_invalid_voucher_with_conflict():
    pricing, db = _pricing()
    add_voucher(db, restaurant_id=OTHER_RESTAURANT_ID)

    with pytest.raises(ConflictError) as exc:
        pricing.price(RESTAURANT_ID, [{"dish_id": DISH_SCHNITZEL["id"], "quantity": 1}], voucher_code="SAVE10", now=LUNCH_TIME)

    assert exc.value.message == "Voucher not valid for this restaurant"


def test_price_rejects_unknown_voucher():
    pricing, _db = _pricing()

    with pytest.raises(ConflictError) as exc:
        pricing.price(RESTAURANT_ID, [{"dish_id": DISH_SCHNITZEL["id"], "quantity": 1}], voucher_code="GHOST", now=LUNCH_TIME)

    assert exc.value.message == "Voucher not found"


def test_load_dishes_batches_missing_and_foreign_dishes():
    pricing, _db = _pricing()
    items = [
        {"dish_id": DISH_SCHNITZEL["id"], "quantity": 1},
        {"dish_id": 999, "quantity": 1},
        {"dish_id": DISH_PIZZA["id"], "quantity": 1},
    ]

    with pytest.raises(ValidationError) as exc:
        pricing.load_dishes(RESTAURANT_ID, items)

    assert exc.value.errors == [
        "Dish with ID 999 not found",
        f"Dish with ID {DISH_PIZZA['id']} does not belong to restaurant {RESTAURANT_ID}",
    ]
