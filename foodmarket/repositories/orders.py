from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import desc, func
from sqlalchemy.orm import Query, Session

from foodmarket.models.customer import Customer
from foodmarket.models.order import Order
from foodmarket.models.order_item import OrderItem
from foodmarket.models.restaurant import Restaurant


@dataclass
class OrderFilters:
    status: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    limit: int | None = None
    offset: int | None = None


class OrderRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, order_id: str) -> Order | None:
        return self.db.query(Order).filter(Order.id == order_id).first()

    def create(self, **fields: Any) -> Order:
        order = Order(**fields)
        self.db.add(order)
        self.db.flush()
        return order

    def update(self, order: Order, **fields: Any) -> Order:
        for key, value in fields.items():
            setattr(order, key, value)
        self.db.flush()
        return order

    def belongs_to_customer(self, order_id: str, customer_id: str) -> bool:
        row = (
            self.db.query(Order.id)
            .filter(Order.id == order_id, Order.customer_id == customer_id)
            .first()
        )
        return row is not None

    def list_for_customer(self, customer_id: str, filters: OrderFilters | None = None) -> list[tuple[Order, Restaurant]]:
        query = (
            self.db.query(Order, Restaurant)
            .join(Restaurant, Restaurant.id == Order.restaurant_id)
            .filter(Order.customer_id == customer_id)
        )
        return self._apply_filters(query, filters).all()

    def list_for_restaurant(
        self, restaurant_id: str, filters: OrderFilters | None = None
    ) -> list[tuple[Order, Customer, int]]:
        total_items = func.coalesce(func.sum(OrderItem.quantity), 0).label("total_items")
        query = (
            self.db.query(Order, Customer, total_items)
            .join(Customer, Customer.id == Order.customer_id)
            .outerjoin(OrderItem, OrderItem.order_id == Order.id)
            .filter(Order.restaurant_id == restaurant_id)
            .group_by(Order.id, Customer.id)
        )
        return [(order, customer, int(count or 0)) for order, customer, count in self._apply_filters(query, filters).all()]

    def _apply_filters(self, query: Query, filters: OrderFilters | None) -> Query:
        filters = filters or OrderFilters()
        if filters.status:
            query = query.filter(Order.order_status == filters.status)
        if filters.date_from is not None:
            query = query.filter(Order.created_at >= filters.date_from)
        if filters.date_to is not None:
            query = query.filter(Order.created_at <= filters.date_to)

        query = query.order_by(desc(Order.created_at), desc(Order.daily_order_number))

        if filters.limit:
            query = query.limit(filters.limit)
        if filters.offset:
            query = query.offset(filters.offset)
        return query
