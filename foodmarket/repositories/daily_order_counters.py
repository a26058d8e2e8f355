from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from foodmarket.core.exceptions import ConflictError
from foodmarket.models.daily_order_counter import DailyOrderCounter

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3


class DailyOrderCounterRepository:
    """Contador atômico por (restaurante, dia) usado na numeração diária dos pedidos.

    O UPDATE trava a linha do contador até o fim da transação de criação do
    pedido, então pedidos concorrentes do mesmo restaurante recebem números
    distintos e sem buracos.
    """

    def __init__(self, db: Session):
        self.db = db

    def next_number(self, restaurant_id: str, order_date: date) -> int:
        for attempt in range(1, MAX_ATTEMPTS + 1):
            number = self._increment(restaurant_id, order_date)
            if number is not None:
                return number
            try:
                with self.db.begin_nested():
                    self.db.add(
                        DailyOrderCounter(restaurant_id=restaurant_id, order_date=order_date, last_number=1)
                    )
                return 1
            except IntegrityError:
                # outro pedido criou o contador primeiro; volta para o UPDATE
                logger.info(
                    "[ORDERS] daily counter insert raced restaurant_id=%s order_date=%s attempt=%s",
                    restaurant_id,
                    order_date,
                    attempt,
                )
        logger.warning(
            "[ORDERS] daily counter exhausted retries restaurant_id=%s order_date=%s",
            restaurant_id,
            order_date,
        )
        raise ConflictError("Could not allocate daily order number")

    def _increment(self, restaurant_id: str, order_date: date) -> int | None:
        key_filter = (
            DailyOrderCounter.restaurant_id == restaurant_id,
            DailyOrderCounter.order_date == order_date,
        )
        result = self.db.execute(
            update(DailyOrderCounter)
            .where(*key_filter)
            .values(last_number=DailyOrderCounter.last_number + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None
        return self.db.execute(select(DailyOrderCounter.last_number).where(*key_filter)).scalar_one()
