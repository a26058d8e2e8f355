from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from foodmarket.core.database import Base


class OrderStatusHistory(Base):
    """Trilha de auditoria append-only: uma linha por transição."""

    __tablename__ = "order_status_history"

    id = Column(Integer, primary_key=True)
    order_id = Column(String(36), ForeignKey("orders.id"), index=True, nullable=False)
    status = Column(String(20), nullable=False)
    changed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    notes = Column(Text, nullable=True)

    order = relationship("Order", back_populates="status_history")
