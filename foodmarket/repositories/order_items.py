from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from sqlalchemy.orm import Session

from foodmarket.core.money import round_money
from foodmarket.models.order_item import OrderItem


class OrderItemRepository:
    def __init__(self, db: Session):
        self.db = db

    def create_batch(self, order_id: str, items: Iterable[dict]) -> list[OrderItem]:
        order_items: list[OrderItem] = []
        for item in items:
            dish_price = round_money(item["dish_price"])
            quantity = int(item["quantity"])
            order_item = OrderItem(
                order_id=order_id,
                dish_id=item.get("dish_id"),
                dish_name=item["dish_name"],
                dish_price=dish_price,
                quantity=quantity,
                subtotal=round_money(dish_price * quantity),
            )
            self.db.add(order_item)
            order_items.append(order_item)
        self.db.flush()
        return order_items

    def find_by_order(self, order_id: str) -> list[OrderItem]:
        return (
            self.db.query(OrderItem)
            .filter(OrderItem.order_id == order_id)
            .order_by(OrderItem.id.asc())
            .all()
        )

    def find_by_orders(self, order_ids: Iterable[str]) -> dict[str, list[OrderItem]]:
        ids = list(order_ids)
        grouped: dict[str, list[OrderItem]] = defaultdict(list)
        if not ids:
            return grouped
        rows = (
            self.db.query(OrderItem)
            .filter(OrderItem.order_id.in_(ids))
            .order_by(OrderItem.id.asc())
            .all()
        )
        for row in rows:
            grouped[row.order_id].append(row)
        return grouped
