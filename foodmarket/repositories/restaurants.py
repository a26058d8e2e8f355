from __future__ import annotations

from sqlalchemy.orm import Session

from foodmarket.models.restaurant import Restaurant, RestaurantOpeningHour


class RestaurantRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, restaurant_id: str) -> Restaurant | None:
        return self.db.query(Restaurant).filter(Restaurant.id == restaurant_id).first()

    def find_by_owner(self, owner_id: str) -> list[Restaurant]:
        return (
            self.db.query(Restaurant)
            .filter(Restaurant.owner_id == owner_id)
            .order_by(Restaurant.name.asc())
            .all()
        )

    def opening_hours_for(self, restaurant_id: str, day_of_week: int) -> RestaurantOpeningHour | None:
        return (
            self.db.query(RestaurantOpeningHour)
            .filter(
                RestaurantOpeningHour.restaurant_id == restaurant_id,
                RestaurantOpeningHour.day_of_week == day_of_week,
            )
            .first()
        )
