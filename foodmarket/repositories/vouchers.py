from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, or_, update
from sqlalchemy.orm import Session

from foodmarket.core.timeutils import utcnow
from foodmarket.models.voucher import Voucher


class VoucherRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_by_code(self, code: str) -> Voucher | None:
        normalized = (code or "").strip().lower()
        if not normalized:
            return None
        return self.db.query(Voucher).filter(func.lower(Voucher.code) == normalized).first()

    def increment_usage_count(self, voucher_id: int, now: datetime | None = None) -> bool:
        """Incrementa o uso só se ainda houver saldo; devolve False se o limite já foi atingido."""
        stmt = (
            update(Voucher)
            .where(
                Voucher.id == voucher_id,
                or_(Voucher.usage_limit.is_(None), Voucher.usage_count < Voucher.usage_limit),
            )
            .values(usage_count=Voucher.usage_count + 1, updated_at=now or utcnow())
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        return result.rowcount == 1
