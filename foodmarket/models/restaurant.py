import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from foodmarket.core.database import Base


class Restaurant(Base):
    __tablename__ = "restaurants"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String(36), ForeignKey("restaurant_owners.id"), index=True, nullable=False)
    name = Column(String(200), nullable=False)

    street = Column(String(200), nullable=False)
    house_number = Column(String(20), nullable=False)
    staircase = Column(String(20), nullable=True)
    door = Column(String(20), nullable=True)
    postal_code = Column(String(10), nullable=False)
    city = Column(String(100), nullable=False)

    contact_phone = Column(String(30), nullable=False, default="")
    contact_email = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    owner = relationship("RestaurantOwner", back_populates="restaurants")
    opening_hours = relationship(
        "RestaurantOpeningHour",
        back_populates="restaurant",
        cascade="all, delete-orphan",
        order_by="RestaurantOpeningHour.day_of_week",
    )
    dishes = relationship("Dish", back_populates="restaurant")


class RestaurantOpeningHour(Base):
    __tablename__ = "restaurant_opening_hours"
    __table_args__ = (UniqueConstraint("restaurant_id", "day_of_week", name="uq_opening_hours_restaurant_day"),)

    id = Column(Integer, primary_key=True)
    restaurant_id = Column(String(36), ForeignKey("restaurants.id", ondelete="CASCADE"), index=True, nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 0=domingo ... 6=sábado
    open_time = Column(String(5), nullable=True)  # "HH:MM"
    close_time = Column(String(5), nullable=True)
    is_closed = Column(Boolean, nullable=False, default=False)

    restaurant = relationship("Restaurant", back_populates="opening_hours")
