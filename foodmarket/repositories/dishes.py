from __future__ import annotations

from typing import Iterable

from sqlalchemy.orm import Session

from foodmarket.models.dish import Dish


class DishRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_by_ids(self, dish_ids: Iterable[int]) -> dict[int, Dish]:
        ids = {dish_id for dish_id in dish_ids if dish_id is not None}
        if not ids:
            return {}
        rows = self.db.query(Dish).filter(Dish.id.in_(ids)).all()
        return {row.id: row for row in rows}
