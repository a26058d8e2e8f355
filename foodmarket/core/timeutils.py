from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable
from zoneinfo import ZoneInfo

from foodmarket.core.config import BUSINESS_TIMEZONE

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def business_now() -> datetime:
    """Hora "de parede" usada para horário de funcionamento, rush e data do pedido."""
    if BUSINESS_TIMEZONE:
        return datetime.now(ZoneInfo(BUSINESS_TIMEZONE))
    return datetime.now().astimezone()


def ensure_aware(value: datetime | None) -> datetime | None:
    # SQLite devolve datetimes sem tzinfo; tudo é gravado em UTC.
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def isoformat(value: datetime | None) -> str | None:
    value = ensure_aware(value)
    return value.isoformat() if value else None
