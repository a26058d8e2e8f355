from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from foodmarket.core.database import get_db
from foodmarket.deps import AuthenticatedUser, get_current_user, require_role
from foodmarket.repositories.orders import OrderFilters
from foodmarket.schemas.orders import OrderCreate, OrderReject, OrderStatusUpdate
from foodmarket.services.auth import ROLE_CUSTOMER, ROLE_RESTAURANT_OWNER
from foodmarket.services.orders import OrderService

router = APIRouter(prefix="/api", tags=["orders"])


def get_order_service(db: Session = Depends(get_db)) -> OrderService:
    return OrderService(db)


def _filters(
    status_filter: Optional[str],
    date_from: Optional[datetime],
    date_to: Optional[datetime],
    limit: int,
    offset: int,
) -> OrderFilters:
    return OrderFilters(status=status_filter, date_from=date_from, date_to=date_to, limit=limit, offset=offset)


@router.post("/orders", status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreate,
    user: AuthenticatedUser = Depends(require_role([ROLE_CUSTOMER])),
    service: OrderService = Depends(get_order_service),
) -> Dict[str, Any]:
    return service.create_order(user.id, payload.model_dump())


@router.get("/orders/my")
def list_my_orders(
    status_filter: Optional[str] = Query(None, alias="status"),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: AuthenticatedUser = Depends(require_role([ROLE_CUSTOMER])),
    service: OrderService = Depends(get_order_service),
) -> List[Dict[str, Any]]:
    return service.get_customer_orders(user.id, _filters(status_filter, date_from, date_to, limit, offset))


@router.get("/orders/{order_id}")
def get_order(
    order_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
) -> Dict[str, Any]:
    return service.get_order_details(order_id, user.id, user.role)


@router.get("/restaurants/{restaurant_id}/orders")
def list_restaurant_orders(
    restaurant_id: str,
    status_filter: Optional[str] = Query(None, alias="status"),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: AuthenticatedUser = Depends(require_role([ROLE_RESTAURANT_OWNER])),
    service: OrderService = Depends(get_order_service),
) -> List[Dict[str, Any]]:
    return service.get_restaurant_orders(
        restaurant_id,
        user.id,
        _filters(status_filter, date_from, date_to, limit, offset),
    )


@router.post("/restaurants/{restaurant_id}/orders/{order_id}/accept")
def accept_order(
    restaurant_id: str,
    order_id: str,
    user: AuthenticatedUser = Depends(require_role([ROLE_RESTAURANT_OWNER])),
    service: OrderService = Depends(get_order_service),
) -> Dict[str, Any]:
    return service.accept_order(order_id, user.id, restaurant_id=restaurant_id)


@router.post("/restaurants/{restaurant_id}/orders/{order_id}/reject")
def reject_order(
    restaurant_id: str,
    order_id: str,
    payload: Optional[OrderReject] = None,
    user: AuthenticatedUser = Depends(require_role([ROLE_RESTAURANT_OWNER])),
    service: OrderService = Depends(get_order_service),
) -> Dict[str, Any]:
    reason = payload.reason if payload else None
    return service.reject_order(order_id, user.id, reason=reason, restaurant_id=restaurant_id)


@router.patch("/restaurants/{restaurant_id}/orders/{order_id}/status")
def update_order_status(
    restaurant_id: str,
    order_id: str,
    payload: OrderStatusUpdate,
    user: AuthenticatedUser = Depends(require_role([ROLE_RESTAURANT_OWNER])),
    service: OrderService = Depends(get_order_service),
) -> Dict[str, Any]:
    return service.update_order_status(
        order_id,
        user.id,
        payload.status,
        notes=payload.notes,
        restaurant_id=restaurant_id,
    )
