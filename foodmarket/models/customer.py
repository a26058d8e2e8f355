import uuid

from sqlalchemy import Column, DateTime, String, func
from sqlalchemy.orm import relationship

from foodmarket.core.database import Base


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False)

    # Endereço de entrega atual do perfil; o pedido guarda a sua própria cópia.
    delivery_street = Column(String(200), nullable=False)
    delivery_house_number = Column(String(20), nullable=False)
    delivery_staircase = Column(String(20), nullable=True)
    delivery_door = Column(String(20), nullable=True)
    delivery_postal_code = Column(String(10), nullable=False)
    delivery_city = Column(String(100), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    orders = relationship("Order", back_populates="customer")
