import uuid

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from foodmarket.core.database import Base


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint(
            "restaurant_id",
            "order_date",
            "daily_order_number",
            name="uq_orders_restaurant_date_number",
        ),
        Index("ix_orders_restaurant_created", "restaurant_id", "created_at"),
        Index("ix_orders_customer_created", "customer_id", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=False)
    restaurant_id = Column(String(36), ForeignKey("restaurants.id"), nullable=False)

    # Numeração exibida para a cozinha: reinicia a cada dia, por restaurante
    daily_order_number = Column(Integer, nullable=False)
    order_date = Column(Date, nullable=False)

    order_status = Column(String(20), nullable=False, default="pending", index=True)

    subtotal = Column(Numeric(10, 2), nullable=False)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=0)
    final_price = Column(Numeric(10, 2), nullable=False)
    voucher_id = Column(Integer, ForeignKey("vouchers.id"), nullable=True)
    voucher_code = Column(String(64), nullable=True)

    # Snapshot do endereço do cliente no momento do pedido
    delivery_street = Column(String(200), nullable=False)
    delivery_house_number = Column(String(20), nullable=False)
    delivery_staircase = Column(String(20), nullable=True)
    delivery_door = Column(String(20), nullable=True)
    delivery_postal_code = Column(String(10), nullable=False)
    delivery_city = Column(String(100), nullable=False)

    estimated_delivery_minutes = Column(Integer, nullable=False)
    customer_notes = Column(Text, nullable=True)
    restaurant_notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    accepted_at = Column(DateTime(timezone=True), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    preparing_started_at = Column(DateTime(timezone=True), nullable=True)
    ready_at = Column(DateTime(timezone=True), nullable=True)
    delivering_started_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    customer = relationship("Customer", back_populates="orders")
    restaurant = relationship("Restaurant")
    voucher = relationship("Voucher", back_populates="orders")
    order_items = relationship("OrderItem", back_populates="order", order_by="OrderItem.id")
    status_history = relationship("OrderStatusHistory", back_populates="order", order_by="OrderStatusHistory.id")
