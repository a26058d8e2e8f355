from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class VoucherValidateRequest(BaseModel):
    voucher_code: Optional[str] = None
    restaurant_id: Optional[str] = None
    order_amount: Optional[Decimal] = None
