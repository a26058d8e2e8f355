from __future__ import annotations

from sqlalchemy.orm import Session

from foodmarket.models.customer import Customer


class CustomerRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, customer_id: str) -> Customer | None:
        return self.db.query(Customer).filter(Customer.id == customer_id).first()
