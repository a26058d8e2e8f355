from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from foodmarket.core.exceptions import NotFoundError, ValidationError
from foodmarket.core.money import ZERO, money_to_float, round_money, to_decimal
from foodmarket.core.timeutils import ensure_aware, utcnow
from foodmarket.models.voucher import DISCOUNT_PERCENTAGE, DISCOUNT_TYPES, Voucher
from foodmarket.repositories.vouchers import VoucherRepository

logger = logging.getLogger(__name__)
VOUCHERS_PREFIX = "[VOUCHERS]"


@dataclass
class VoucherCheck:
    valid: bool
    voucher: Voucher | None = None
    message: str | None = None


def calculate_discount(voucher: Voucher, amount) -> Decimal:
    """Desconto em moeda para `amount`. Nunca passa do próprio valor."""
    if voucher.discount_type not in DISCOUNT_TYPES:
        raise ValidationError(f"Unknown discount type: {voucher.discount_type}")
    amount = to_decimal(amount)
    value = to_decimal(voucher.discount_value)
    if voucher.discount_type == DISCOUNT_PERCENTAGE:
        value = amount * value / Decimal("100")
    return round_money(min(value, amount))


class VoucherService:
    def __init__(self, db: Session, repository: VoucherRepository | None = None):
        self.db = db
        self.repository = repository or VoucherRepository(db)

    def is_valid(self, code: str, restaurant_id: str | None = None, now: datetime | None = None) -> VoucherCheck:
        voucher = self.repository.find_by_code(code)
        if not voucher:
            return VoucherCheck(valid=False, message="Voucher not found")

        if not voucher.is_active:
            return VoucherCheck(valid=False, voucher=voucher, message="Voucher is not active")

        now = ensure_aware(now) or utcnow()
        if now < ensure_aware(voucher.valid_from):
            return VoucherCheck(valid=False, voucher=voucher, message="Voucher not yet valid")
        if now > ensure_aware(voucher.valid_until):
            return VoucherCheck(valid=False, voucher=voucher, message="Voucher has expired")

        if voucher.usage_limit is not None and int(voucher.usage_count or 0) >= int(voucher.usage_limit):
            return VoucherCheck(valid=False, voucher=voucher, message="Usage limit reached")

        if voucher.restaurant_id and restaurant_id and voucher.restaurant_id != restaurant_id:
            return VoucherCheck(valid=False, voucher=voucher, message="Voucher not valid for this restaurant")

        return VoucherCheck(valid=True, voucher=voucher)

    def calculate_discount(self, voucher: Voucher, amount) -> Decimal:
        return calculate_discount(voucher, amount)

    def increment_usage_count(self, voucher_id: int) -> bool:
        """Conta um uso em transação própria. Chamado só depois do pedido commitado."""
        try:
            incremented = self.repository.increment_usage_count(voucher_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        if not incremented:
            logger.warning("%s usage limit reached before increment voucher_id=%s", VOUCHERS_PREFIX, voucher_id)
        return incremented

    def validate_voucher(
        self,
        code: str | None,
        restaurant_id: str | None = None,
        order_amount=None,
        now: datetime | None = None,
    ) -> dict:
        if not code or not code.strip():
            raise ValidationError("Voucher code is required")
        if order_amount is not None and to_decimal(order_amount) < ZERO:
            raise ValidationError("Order amount must not be negative")

        voucher = self.repository.find_by_code(code)
        if not voucher:
            raise NotFoundError("Voucher not found")

        summary = _voucher_to_dict(voucher)
        check = self.is_valid(code, restaurant_id=restaurant_id, now=now)
        if not check.valid:
            return {"valid": False, "voucher": summary, "message": check.message}

        # sem valor do pedido não há como confirmar o desconto
        if order_amount is None:
            return {"valid": False, "voucher": summary, "message": "Voucher is invalid"}

        amount = round_money(order_amount)
        discount_amount = calculate_discount(voucher, amount)
        final_price = round_money(amount - discount_amount)
        if final_price <= ZERO:
            return {"valid": False, "voucher": summary, "message": "Final price is 0"}

        return {
            "valid": True,
            "voucher": summary,
            "message": "Voucher is valid",
            "discount_amount": money_to_float(discount_amount),
            "final_price": money_to_float(final_price),
        }


def _voucher_to_dict(voucher: Voucher) -> dict:
    return {
        "code": voucher.code,
        "discount_type": voucher.discount_type,
        "discount_value": money_to_float(voucher.discount_value),
    }
