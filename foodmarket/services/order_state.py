from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from foodmarket.core.exceptions import ConflictError, ValidationError
from foodmarket.core.timeutils import Clock, utcnow
from foodmarket.models.order import Order
from foodmarket.models.order_status_history import OrderStatusHistory
from foodmarket.repositories.order_status_history import OrderStatusHistoryRepository
from foodmarket.repositories.orders import OrderRepository

logger = logging.getLogger(__name__)
ORDERS_PREFIX = "[ORDERS]"

PENDING = "pending"
ACCEPTED = "accepted"
REJECTED = "rejected"
PREPARING = "preparing"
READY = "ready"
DELIVERING = "delivering"
DELIVERED = "delivered"
CANCELLED = "cancelled"

ORDER_STATUSES = (PENDING, ACCEPTED, REJECTED, PREPARING, READY, DELIVERING, DELIVERED, CANCELLED)
TERMINAL_STATUSES = frozenset({REJECTED, DELIVERED, CANCELLED})

VALID_TRANSITIONS: dict[str, frozenset[str]] = {
    PENDING: frozenset({ACCEPTED, REJECTED, CANCELLED}),
    ACCEPTED: frozenset({PREPARING, CANCELLED}),
    PREPARING: frozenset({READY, CANCELLED}),
    READY: frozenset({DELIVERING, CANCELLED}),
    DELIVERING: frozenset({DELIVERED, CANCELLED}),
    REJECTED: frozenset(),
    DELIVERED: frozenset(),
    CANCELLED: frozenset(),
}

# Coluna de horário gravada na primeira vez em que o status é atingido
STATUS_TIMESTAMP_FIELDS = {
    ACCEPTED: "accepted_at",
    REJECTED: "rejected_at",
    PREPARING: "preparing_started_at",
    READY: "ready_at",
    DELIVERING: "delivering_started_at",
    DELIVERED: "delivered_at",
}


def normalize_status(status: str | None) -> str:
    return (status or "").strip().lower()


def allowed_transitions(status: str) -> frozenset[str]:
    return VALID_TRANSITIONS.get(normalize_status(status), frozenset())


def can_transition(current: str, target: str) -> bool:
    return normalize_status(target) in allowed_transitions(current)


class OrderStateMachine:
    def __init__(
        self,
        db: Session,
        orders: OrderRepository | None = None,
        history: OrderStatusHistoryRepository | None = None,
        clock: Clock | None = None,
    ):
        self.db = db
        self.orders = orders or OrderRepository(db)
        self.history = history or OrderStatusHistoryRepository(db)
        self.clock = clock or utcnow

    def record_initial(self, order: Order) -> OrderStatusHistory:
        """Linha `pending` da criação. Não commita: faz parte da transação do pedido."""
        return self.history.create(order.id, PENDING, changed_at=order.created_at)

    def accept(self, order: Order) -> Order:
        self._require_pending(order)
        return self._apply(order, ACCEPTED)

    def reject(self, order: Order, reason: str | None = None) -> Order:
        self._require_pending(order)
        return self._apply(order, REJECTED, notes=reason)

    def update_status(self, order: Order, new_status: str, notes: str | None = None) -> Order:
        current = normalize_status(order.order_status)
        target = normalize_status(new_status)

        if current in TERMINAL_STATUSES:
            raise ConflictError("Order is already in final status")
        if target not in ORDER_STATUSES:
            raise ValidationError(f"Unknown order status: {new_status}")
        if not can_transition(current, target):
            raise ConflictError(f"Invalid status transition from {current} to {target}")

        return self._apply(order, target, notes=notes)

    def _require_pending(self, order: Order) -> None:
        if normalize_status(order.order_status) != PENDING:
            raise ConflictError("Order is not in pending status")

    def _apply(self, order: Order, new_status: str, notes: str | None = None) -> Order:
        previous_status = order.order_status
        now = self.clock()
        fields = {"order_status": new_status, "updated_at": now}
        timestamp_field = STATUS_TIMESTAMP_FIELDS.get(new_status)
        if timestamp_field and getattr(order, timestamp_field, None) is None:
            fields[timestamp_field] = now
        if notes:
            fields["restaurant_notes"] = notes

        # status + histórico: ou os dois, ou nenhum
        try:
            self.orders.update(order, **fields)
            self.history.create(order.id, new_status, notes=notes, changed_at=now)
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception(
                "%s status transition failed order_id=%s from=%s to=%s",
                ORDERS_PREFIX,
                order.id,
                previous_status,
                new_status,
            )
            raise

        self.db.refresh(order)
        logger.info(
            "%s status changed order_id=%s from=%s to=%s",
            ORDERS_PREFIX,
            order.id,
            previous_status,
            new_status,
        )
        return order
