from __future__ import annotations

from fastapi import APIRouter, Depends

from foodmarket.core.metrics import request_metrics
from foodmarket.deps import AuthenticatedUser, require_role
from foodmarket.services.auth import ROLE_RESTAURANT_OWNER

router = APIRouter(prefix="/internal/metrics", tags=["internal-metrics"])


@router.get("/endpoints")
def endpoint_metrics(_user: AuthenticatedUser = Depends(require_role([ROLE_RESTAURANT_OWNER]))):
    return {"endpoints": request_metrics.snapshot()}


@router.get("/roles")
def role_metrics(_user: AuthenticatedUser = Depends(require_role([ROLE_RESTAURANT_OWNER]))):
    return {"roles": request_metrics.snapshot_per_role()}
