from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from foodmarket.core.database import get_db
from foodmarket.schemas.vouchers import VoucherValidateRequest
from foodmarket.services.vouchers import VoucherService

router = APIRouter(prefix="/api/vouchers", tags=["vouchers"])


@router.post("/validate")
def validate_voucher(payload: VoucherValidateRequest, db: Session = Depends(get_db)) -> Dict[str, Any]:
    """Checagem pública usada pelo carrinho antes de fechar o pedido."""
    return VoucherService(db).validate_voucher(
        payload.voucher_code,
        restaurant_id=payload.restaurant_id,
        order_amount=payload.order_amount,
    )
