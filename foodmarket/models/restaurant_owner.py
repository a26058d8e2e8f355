import uuid

from sqlalchemy import Column, DateTime, String, func
from sqlalchemy.orm import relationship

from foodmarket.core.database import Base


class RestaurantOwner(Base):
    __tablename__ = "restaurant_owners"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    restaurants = relationship("Restaurant", back_populates="owner")
