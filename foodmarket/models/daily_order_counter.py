from sqlalchemy import Column, Date, ForeignKey, Integer, String

from foodmarket.core.database import Base


class DailyOrderCounter(Base):
    __tablename__ = "daily_order_counters"

    restaurant_id = Column(String(36), ForeignKey("restaurants.id", ondelete="CASCADE"), primary_key=True)
    order_date = Column(Date, primary_key=True)
    last_number = Column(Integer, nullable=False, default=0)
