from typing import Any, List, Optional

from pydantic import BaseModel, Field


class OrderItemIn(BaseModel):
    # tipos, faixa de quantidade e existência do prato são checados no serviço, em lote
    dish_id: Any = None
    quantity: Any = None


class OrderCreate(BaseModel):
    restaurant_id: Any = None
    items: Optional[List[OrderItemIn]] = None
    voucher_code: Optional[str] = None
    customer_notes: Optional[str] = Field(default=None, max_length=1000)


class OrderReject(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=1000)


class OrderStatusUpdate(BaseModel):
    status: str
    notes: Optional[str] = Field(default=None, max_length=1000)
