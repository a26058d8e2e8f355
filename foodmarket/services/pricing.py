from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable

from sqlalchemy.orm import Session

from foodmarket.core.config import MAX_ITEM_QUANTITY
from foodmarket.core.exceptions import ConflictError, ValidationError
from foodmarket.core.money import ZERO, round_money, to_decimal
from foodmarket.models.dish import Dish
from foodmarket.models.voucher import Voucher
from foodmarket.repositories.dishes import DishRepository
from foodmarket.services.vouchers import VoucherService


@dataclass
class PricedOrder:
    dishes: list[Dish]
    line_items: list[dict]
    subtotal: Decimal
    discount_amount: Decimal = ZERO
    final_price: Decimal = ZERO
    voucher: Voucher | None = None


def _field(item: Any, *names: str):
    for name in names:
        if isinstance(item, dict):
            if name in item:
                return item[name]
        elif hasattr(item, name):
            return getattr(item, name)
    return None


def _is_valid_quantity(quantity: Any) -> bool:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        return False
    return 1 <= quantity <= MAX_ITEM_QUANTITY


def _is_valid_dish_id(dish_id: Any) -> bool:
    return not isinstance(dish_id, bool) and isinstance(dish_id, int) and dish_id > 0


def validate_order_structure(restaurant_id: str | None, items: Iterable[Any] | None) -> list[dict]:
    """Checagem estrutural do pedido, reunindo todos os erros antes de falhar."""
    errors: list[str] = []
    normalized: list[dict] = []

    if not restaurant_id or not isinstance(restaurant_id, str):
        errors.append("Restaurant ID is required")

    items = list(items or [])
    if not items:
        errors.append("At least one item is required")

    for index, item in enumerate(items, start=1):
        dish_id = _field(item, "dish_id", "dishId")
        quantity = _field(item, "quantity")
        if dish_id is None or dish_id == "":
            errors.append(f"Item {index}: Dish ID is required")
        elif not _is_valid_dish_id(dish_id):
            errors.append(f"Item {index}: Dish ID must be a positive integer")
        if not _is_valid_quantity(quantity):
            errors.append(f"Item {index}: Quantity must be between 1 and {MAX_ITEM_QUANTITY}")
        normalized.append({"dish_id": dish_id, "quantity": quantity})

    if errors:
        raise ValidationError(errors)
    return normalized


def compute_subtotal(lines: Iterable[tuple[Any, int]]) -> Decimal:
    total = sum((to_decimal(price) * quantity for price, quantity in lines), ZERO)
    return round_money(total)


class OrderPricing:
    def __init__(
        self,
        db: Session,
        dishes: DishRepository | None = None,
        vouchers: VoucherService | None = None,
    ):
        self.dishes = dishes or DishRepository(db)
        self.vouchers = vouchers or VoucherService(db)

    def load_dishes(self, restaurant_id: str, items: list[dict]) -> list[Dish]:
        """Todos os pratos precisam existir e ser do restaurante informado."""
        dish_map = self.dishes.find_by_ids(item["dish_id"] for item in items)
        errors: list[str] = []
        dishes: list[Dish] = []
        for item in items:
            dish = dish_map.get(item["dish_id"])
            if dish is None:
                errors.append(f"Dish with ID {item['dish_id']} not found")
                continue
            if dish.restaurant_id != restaurant_id:
                errors.append(f"Dish with ID {dish.id} does not belong to restaurant {restaurant_id}")
                continue
            dishes.append(dish)
        if errors:
            raise ValidationError(errors)
        return dishes

    def price(
        self,
        restaurant_id: str,
        items: list[dict],
        voucher_code: str | None = None,
        now: datetime | None = None,
    ) -> PricedOrder:
        dishes = self.load_dishes(restaurant_id, items)

        line_items = [
            {
                "dish_id": dish.id,
                "dish_name": dish.name,
                "dish_price": round_money(dish.price),
                "quantity": item["quantity"],
            }
            for dish, item in zip(dishes, items)
        ]
        subtotal = compute_subtotal((line["dish_price"], line["quantity"]) for line in line_items)
        priced = PricedOrder(dishes=dishes, line_items=line_items, subtotal=subtotal, final_price=subtotal)

        if voucher_code:
            check = self.vouchers.is_valid(voucher_code, restaurant_id=restaurant_id, now=now)
            if not check.valid or check.voucher is None:
                raise ConflictError(check.message or "Invalid voucher")
            priced.voucher = check.voucher
            priced.discount_amount = round_money(self.vouchers.calculate_discount(check.voucher, subtotal))

        # desconto limitado ao subtotal, então o preço final nunca fica negativo
        priced.final_price = round_money(subtotal - priced.discount_amount)
        return priced
