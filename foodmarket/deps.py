# foodmarket/deps.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from foodmarket.core.request_context import set_request_context
from foodmarket.services.auth import decode_access_token, normalize_role

# Login fica em outro serviço; aqui só validamos o Bearer.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthenticatedUser:
    id: str
    role: str


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _extract_user_id(payload: Dict[str, Any]) -> Optional[str]:
    raw = payload.get("sub")
    if raw is None:
        return None
    user_id = str(raw).strip()
    return user_id or None


def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
) -> AuthenticatedUser:
    """Lê o JWT e devolve o usuário (id + papel) sem ir ao banco."""
    if not token:
        raise _unauthorized("Not authenticated")

    try:
        payload = decode_access_token(token)
    except ValueError:
        raise _unauthorized("Invalid or expired token")

    user_id = _extract_user_id(payload)
    if user_id is None:
        raise _unauthorized("Invalid token (missing subject)")

    role = normalize_role(payload.get("role"))
    if role is None:
        raise _unauthorized("Invalid token (unknown role)")

    user = AuthenticatedUser(id=user_id, role=role)
    request.state.user = user
    set_request_context(user_id=user.id, user_role=user.role)
    return user


def _log_access_denied(
    *,
    reason: str,
    user: AuthenticatedUser,
    request: Request,
) -> None:
    endpoint = f"{request.method} {request.url.path}"
    logger.warning(
        "Access denied (%s): user_id=%s user_role=%s endpoint=%s",
        reason,
        getattr(user, "id", None),
        getattr(user, "role", None),
        endpoint,
    )


def require_role(roles: Iterable[str]):
    allowed = {normalize_role(role) or role.strip().lower() for role in roles}

    def _dependency(
        request: Request,
        user: AuthenticatedUser = Depends(get_current_user),
    ) -> AuthenticatedUser:
        if normalize_role(user.role) not in allowed:
            _log_access_denied(reason="role_denied", user=user, request=request)
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return user

    return _dependency
