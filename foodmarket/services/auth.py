from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt

from foodmarket.core.config import JWT_ALGORITHM, JWT_EXPIRE_MINUTES, JWT_SECRET_KEY

ROLE_CUSTOMER = "customer"
ROLE_RESTAURANT_OWNER = "restaurant_owner"

# Tokens antigos ainda chegam com o nome em camelCase
_ROLE_ALIASES = {
    "customer": ROLE_CUSTOMER,
    "restaurant_owner": ROLE_RESTAURANT_OWNER,
    "restaurantowner": ROLE_RESTAURANT_OWNER,
}


def normalize_role(role: Any) -> Optional[str]:
    if not isinstance(role, str):
        return None
    return _ROLE_ALIASES.get(role.strip().lower())


# =========================
# JWT HELPERS
# =========================
def create_access_token(
    user_id: str,
    role: str,
    extra: Optional[Dict[str, Any]] = None,
    expires_minutes: int = JWT_EXPIRE_MINUTES,
    secret_key: Optional[str] = None,
) -> str:
    """
    "sub" sempre como STRING (python-jose recusa subject não-string).
    """
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=expires_minutes)

    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    if extra:
        payload.update(extra)

    return jwt.encode(payload, secret_key or JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str, secret_key: Optional[str] = None) -> Dict[str, Any]:
    """
    Retorna o payload do JWT ou levanta ValueError se inválido/expirado.
    """
    try:
        return jwt.decode(token, secret_key or JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except Exception as e:
        raise ValueError("Invalid or expired token") from e
