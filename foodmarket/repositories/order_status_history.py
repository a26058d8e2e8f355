from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Session

from foodmarket.core.timeutils import utcnow
from foodmarket.models.order_status_history import OrderStatusHistory


class OrderStatusHistoryRepository:
    """Só insere e lê. Linhas de histórico nunca são alteradas nem apagadas."""

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        order_id: str,
        status: str,
        notes: str | None = None,
        changed_at: datetime | None = None,
    ) -> OrderStatusHistory:
        entry = OrderStatusHistory(
            order_id=order_id,
            status=status,
            notes=notes or None,
            changed_at=changed_at or utcnow(),
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def find_by_order(self, order_id: str) -> list[OrderStatusHistory]:
        return (
            self.db.query(OrderStatusHistory)
            .filter(OrderStatusHistory.order_id == order_id)
            .order_by(OrderStatusHistory.changed_at.asc(), OrderStatusHistory.id.asc())
            .all()
        )
