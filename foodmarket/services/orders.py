from __future__ import annotations

import logging
import random
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from foodmarket.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from foodmarket.core.money import money_to_float
from foodmarket.core.timeutils import Clock, business_now, ensure_aware, isoformat
from foodmarket.models.customer import Customer
from foodmarket.models.order import Order
from foodmarket.models.order_item import OrderItem
from foodmarket.models.order_status_history import OrderStatusHistory
from foodmarket.models.restaurant import Restaurant
from foodmarket.repositories.customers import CustomerRepository
from foodmarket.repositories.daily_order_counters import DailyOrderCounterRepository
from foodmarket.repositories.order_items import OrderItemRepository
from foodmarket.repositories.orders import OrderFilters, OrderRepository
from foodmarket.repositories.restaurants import RestaurantRepository
from foodmarket.services.auth import ROLE_CUSTOMER, ROLE_RESTAURANT_OWNER, normalize_role
from foodmarket.services.delivery_estimate import DeliveryEstimator
from foodmarket.services.order_state import ORDER_STATUSES, OrderStateMachine, PENDING, normalize_status
from foodmarket.services.pricing import OrderPricing, validate_order_structure
from foodmarket.services.vouchers import VoucherService

logger = logging.getLogger(__name__)
ORDERS_PREFIX = "[ORDERS]"


def _order_to_dict(o: Order) -> Dict[str, Any]:
    delivery_address = {
        "street": o.delivery_street,
        "house_number": o.delivery_house_number,
        "staircase": o.delivery_staircase,
        "door": o.delivery_door,
        "postal_code": o.delivery_postal_code,
        "city": o.delivery_city,
    }

    return {
        "id": o.id,
        "customer_id": o.customer_id,
        "restaurant_id": o.restaurant_id,
        "daily_order_number": o.daily_order_number,
        "order_date": o.order_date.isoformat() if o.order_date else None,
        "order_status": o.order_status,
        "subtotal": money_to_float(o.subtotal),
        "discount_amount": money_to_float(o.discount_amount),
        "final_price": money_to_float(o.final_price),
        "voucher_id": o.voucher_id,
        "voucher_code": o.voucher_code,
        "delivery_address": delivery_address,
        "estimated_delivery_minutes": o.estimated_delivery_minutes,
        "customer_notes": o.customer_notes,
        "restaurant_notes": o.restaurant_notes,
        "created_at": isoformat(o.created_at),
        "accepted_at": isoformat(o.accepted_at),
        "rejected_at": isoformat(o.rejected_at),
        "preparing_started_at": isoformat(o.preparing_started_at),
        "ready_at": isoformat(o.ready_at),
        "delivering_started_at": isoformat(o.delivering_started_at),
        "delivered_at": isoformat(o.delivered_at),
        "updated_at": isoformat(o.updated_at),
    }


def _order_item_to_dict(item: OrderItem) -> Dict[str, Any]:
    return {
        "id": item.id,
        "order_id": item.order_id,
        "dish_id": item.dish_id,
        "dish_name": item.dish_name,
        "dish_price": money_to_float(item.dish_price),
        "quantity": item.quantity,
        "subtotal": money_to_float(item.subtotal),
    }


def _status_history_to_dict(entry: OrderStatusHistory) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "status": entry.status,
        "changed_at": isoformat(entry.changed_at),
        "notes": entry.notes,
    }


def _customer_name(customer: Customer | None) -> Optional[str]:
    if customer is None:
        return None
    return f"{customer.first_name} {customer.last_name}".strip()


def _restaurant_address(restaurant: Restaurant) -> Dict[str, Any]:
    return {
        "street": restaurant.street,
        "house_number": restaurant.house_number,
        "staircase": restaurant.staircase,
        "door": restaurant.door,
        "postal_code": restaurant.postal_code,
        "city": restaurant.city,
    }


def _request_field(request: Any, name: str, default: Any = None) -> Any:
    if isinstance(request, dict):
        return request.get(name, default)
    return getattr(request, name, default)


class OrderService:
    """Orquestra criação, transições e consultas de pedidos.

    `clock` devolve a hora local do negócio (horário de funcionamento, rush e
    data do pedido); as colunas de horário são gravadas em UTC.
    """

    def __init__(self, db: Session, clock: Clock | None = None, rng: random.Random | None = None):
        self.db = db
        self.clock = clock or business_now
        self.orders = OrderRepository(db)
        self.order_items = OrderItemRepository(db)
        self.restaurants = RestaurantRepository(db)
        self.customers = CustomerRepository(db)
        self.counters = DailyOrderCounterRepository(db)
        self.vouchers = VoucherService(db)
        self.pricing = OrderPricing(db, vouchers=self.vouchers)
        self.estimator = DeliveryEstimator(clock=self.clock, rng=rng)
        self.state = OrderStateMachine(db, orders=self.orders, clock=self._utcnow)

    def _utcnow(self) -> datetime:
        return self.clock().astimezone(timezone.utc)

    # =========================
    # CREATE
    # =========================
    def create_order(self, customer_id: str, request: Any) -> Dict[str, Any]:
        restaurant_id = _request_field(request, "restaurant_id")
        items = validate_order_structure(restaurant_id, _request_field(request, "items"))

        restaurant = self.restaurants.find_by_id(restaurant_id)
        if not restaurant:
            raise NotFoundError("Restaurant not found")

        local_now = self.clock()
        if not self.is_restaurant_open(restaurant_id, local_now):
            raise ConflictError("Restaurant is closed")

        now = local_now.astimezone(timezone.utc)
        voucher_code = (_request_field(request, "voucher_code") or "").strip() or None
        priced = self.pricing.price(restaurant_id, items, voucher_code=voucher_code, now=now)

        customer = self.customers.find_by_id(customer_id)
        if not customer:
            raise NotFoundError("Customer not found")

        estimated_minutes = self.estimator.estimate(priced.dishes)

        try:
            daily_number = self.counters.next_number(restaurant_id, local_now.date())
            order = self.orders.create(
                customer_id=customer.id,
                restaurant_id=restaurant_id,
                daily_order_number=daily_number,
                order_date=local_now.date(),
                order_status=PENDING,
                subtotal=priced.subtotal,
                discount_amount=priced.discount_amount,
                final_price=priced.final_price,
                voucher_id=priced.voucher.id if priced.voucher else None,
                voucher_code=priced.voucher.code if priced.voucher else None,
                delivery_street=customer.delivery_street,
                delivery_house_number=customer.delivery_house_number,
                delivery_staircase=customer.delivery_staircase,
                delivery_door=customer.delivery_door,
                delivery_postal_code=customer.delivery_postal_code,
                delivery_city=customer.delivery_city,
                estimated_delivery_minutes=estimated_minutes,
                customer_notes=_request_field(request, "customer_notes"),
                created_at=now,
                updated_at=now,
            )
            order_items = self.order_items.create_batch(order.id, priced.line_items)
            self.state.record_initial(order)
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception(
                "%s order creation failed restaurant_id=%s customer_id=%s",
                ORDERS_PREFIX,
                restaurant_id,
                customer_id,
            )
            raise

        logger.info(
            "%s order created order_id=%s restaurant_id=%s daily_order_number=%s final_price=%s",
            ORDERS_PREFIX,
            order.id,
            restaurant_id,
            daily_number,
            priced.final_price,
        )

        if priced.voucher is not None:
            self._consume_voucher(priced.voucher.id, order.id)

        result = _order_to_dict(order)
        result["items"] = [_order_item_to_dict(item) for item in order_items]
        return result

    def is_restaurant_open(self, restaurant_id: str, local_now: datetime) -> bool:
        # weekday(): segunda=0; na tabela domingo=0
        day_of_week = (local_now.weekday() + 1) % 7
        hours = self.restaurants.opening_hours_for(restaurant_id, day_of_week)
        if not hours or hours.is_closed or not hours.open_time or not hours.close_time:
            return False
        current_time = local_now.strftime("%H:%M")
        return hours.open_time <= current_time <= hours.close_time

    def _consume_voucher(self, voucher_id: int, order_id: str) -> None:
        # O pedido já está gravado; falha aqui não desfaz o pedido.
        try:
            incremented = self.vouchers.increment_usage_count(voucher_id)
        except Exception:
            logger.exception(
                "%s voucher usage increment failed voucher_id=%s order_id=%s",
                ORDERS_PREFIX,
                voucher_id,
                order_id,
            )
            return
        if not incremented:
            logger.warning(
                "%s voucher usage not counted, limit reached voucher_id=%s order_id=%s",
                ORDERS_PREFIX,
                voucher_id,
                order_id,
            )

    # =========================
    # TRANSITIONS
    # =========================
    def accept_order(self, order_id: str, owner_id: str, restaurant_id: Optional[str] = None) -> Dict[str, Any]:
        order = self._load_order_for_owner(order_id, owner_id, restaurant_id)
        return _order_to_dict(self.state.accept(order))

    def reject_order(
        self,
        order_id: str,
        owner_id: str,
        reason: Optional[str] = None,
        restaurant_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        order = self._load_order_for_owner(order_id, owner_id, restaurant_id)
        return _order_to_dict(self.state.reject(order, reason=reason))

    def update_order_status(
        self,
        order_id: str,
        owner_id: str,
        new_status: str,
        notes: Optional[str] = None,
        restaurant_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        order = self._load_order_for_owner(order_id, owner_id, restaurant_id)
        return _order_to_dict(self.state.update_status(order, new_status, notes=notes))

    def _load_order_for_owner(self, order_id: str, owner_id: str, restaurant_id: Optional[str]) -> Order:
        order = self.orders.find_by_id(order_id)
        if not order or (restaurant_id and order.restaurant_id != restaurant_id):
            raise NotFoundError("Order not found")

        restaurant = self.restaurants.find_by_id(order.restaurant_id)
        if not restaurant or restaurant.owner_id != owner_id:
            logger.warning(
                "%s access denied order_id=%s owner_id=%s restaurant_id=%s",
                ORDERS_PREFIX,
                order_id,
                owner_id,
                order.restaurant_id,
            )
            raise AuthorizationError("You do not own the restaurant of this order")
        return order

    # =========================
    # QUERIES
    # =========================
    def get_order_details(self, order_id: str, user_id: str, role: str) -> Dict[str, Any]:
        order = self.orders.find_by_id(order_id)
        if not order:
            raise NotFoundError("Order not found")

        normalized_role = normalize_role(role)
        if normalized_role == ROLE_CUSTOMER:
            allowed = self.orders.belongs_to_customer(order.id, user_id)
        elif normalized_role == ROLE_RESTAURANT_OWNER:
            owned_ids = {restaurant.id for restaurant in self.restaurants.find_by_owner(user_id)}
            allowed = order.restaurant_id in owned_ids
        else:
            allowed = False

        if not allowed:
            logger.warning(
                "%s access denied order_id=%s user_id=%s role=%s",
                ORDERS_PREFIX,
                order_id,
                user_id,
                role,
            )
            raise AuthorizationError("You do not have access to this order")

        result = _order_to_dict(order)
        result["items"] = [_order_item_to_dict(item) for item in self.order_items.find_by_order(order.id)]
        result["status_history"] = [
            _status_history_to_dict(entry) for entry in self.state.history.find_by_order(order.id)
        ]
        return result

    def get_customer_orders(self, customer_id: str, filters: Optional[OrderFilters] = None) -> List[Dict[str, Any]]:
        filters = self._normalize_filters(filters)
        rows = self.orders.list_for_customer(customer_id, filters)
        items_by_order = self.order_items.find_by_orders(order.id for order, _ in rows)

        results = []
        for order, restaurant in rows:
            data = _order_to_dict(order)
            data["restaurant_name"] = restaurant.name
            data["restaurant_address"] = _restaurant_address(restaurant)
            data["items"] = [_order_item_to_dict(item) for item in items_by_order.get(order.id, [])]
            results.append(data)
        return results

    def get_restaurant_orders(
        self,
        restaurant_id: str,
        owner_id: str,
        filters: Optional[OrderFilters] = None,
    ) -> List[Dict[str, Any]]:
        restaurant = self.restaurants.find_by_id(restaurant_id)
        if not restaurant:
            raise NotFoundError("Restaurant not found")
        if restaurant.owner_id != owner_id:
            logger.warning(
                "%s access denied restaurant_id=%s owner_id=%s",
                ORDERS_PREFIX,
                restaurant_id,
                owner_id,
            )
            raise AuthorizationError("You do not own this restaurant")

        filters = self._normalize_filters(filters)
        rows = self.orders.list_for_restaurant(restaurant_id, filters)
        items_by_order = self.order_items.find_by_orders(order.id for order, _, _ in rows)

        results = []
        for order, customer, total_items in rows:
            data = _order_to_dict(order)
            data["customer_name"] = _customer_name(customer)
            data["customer_email"] = customer.email
            data["total_items"] = total_items
            data["items"] = [_order_item_to_dict(item) for item in items_by_order.get(order.id, [])]
            results.append(data)
        return results

    def _normalize_filters(self, filters: Optional[OrderFilters]) -> OrderFilters:
        filters = filters or OrderFilters()
        status = normalize_status(filters.status) or None
        if status and status not in ORDER_STATUSES:
            raise ValidationError(f"Unknown order status: {filters.status}")

        # created_at é gravado em UTC; sem fuso, o filtro já vem em UTC
        def _to_utc(value: Optional[datetime]) -> Optional[datetime]:
            value = ensure_aware(value)
            return value.astimezone(timezone.utc) if value else None

        return OrderFilters(
            status=status,
            date_from=_to_utc(filters.date_from),
            date_to=_to_utc(filters.date_to),
            limit=filters.limit,
            offset=filters.offset,
        )
