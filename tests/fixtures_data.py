"""Conjunto de dados reutilizável para cenários de teste do core de pedidos."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from foodmarket.core.database import Base, build_engine
import foodmarket.models  # noqa: F401
from foodmarket.models.customer import Customer
from foodmarket.models.dish import Dish
from foodmarket.models.restaurant import Restaurant, RestaurantOpeningHour
from foodmarket.models.restaurant_owner import RestaurantOwner
from foodmarket.models.voucher import DISCOUNT_PERCENTAGE, Voucher

OWNER_ID = "owner-1"
OTHER_OWNER_ID = "owner-2"
RESTAURANT_ID = "restaurant-1"
OTHER_RESTAURANT_ID = "restaurant-2"
CUSTOMER_ID = "customer-1"
OTHER_CUSTOMER_ID = "customer-2"

# quarta-feira (day_of_week=3), fora do horário de pico
LUNCH_TIME = datetime(2026, 3, 4, 12, 0, tzinfo=timezone.utc)
RUSH_TIME = datetime(2026, 3, 4, 18, 0, tzinfo=timezone.utc)
NEXT_DAY_LUNCH = datetime(2026, 3, 5, 12, 0, tzinfo=timezone.utc)

DISH_SCHNITZEL = {"id": 1, "restaurant_id": RESTAURANT_ID, "name": "Schnitzel", "price": Decimal("8.00"), "cooking_time_minutes": 15}
DISH_GOULASH = {"id": 2, "restaurant_id": RESTAURANT_ID, "name": "Goulash", "price": Decimal("12.00"), "cooking_time_minutes": 20}
DISH_STRUDEL = {"id": 3, "restaurant_id": RESTAURANT_ID, "name": "Strudel", "price": Decimal("8.50"), "cooking_time_minutes": None}
DISH_PIZZA = {"id": 4, "restaurant_id": OTHER_RESTAURANT_ID, "name": "Pizza", "price": Decimal("9.50"), "cooking_time_minutes": 12}

CUSTOMER_ADDRESS = {
    "delivery_street": "Mariahilfer Straße",
    "delivery_house_number": "12",
    "delivery_staircase": "2",
    "delivery_door": "7",
    "delivery_postal_code": "1060",
    "delivery_city": "Wien",
}

HAPPY_PATH_ORDER_PAYLOAD = {
    "restaurant_id": RESTAURANT_ID,
    "items": [
        {"dish_id": DISH_SCHNITZEL["id"], "quantity": 2},
        {"dish_id": DISH_GOULASH["id"], "quantity": 1},
    ],
    "customer_notes": "Bitte klingeln",
}

MIXED_RESTAURANT_ORDER_PAYLOAD = {
    "restaurant_id": RESTAURANT_ID,
    "items": [
        {"dish_id": DISH_SCHNITZEL["id"], "quantity": 1},
        {"dish_id": DISH_PIZZA["id"], "quantity": 1},
    ],
}


class FrozenClock:
    def __init__(self, moment: datetime):
        self.moment = moment

    def __call__(self) -> datetime:
        return self.moment


class FixedRandom:
    """Substitui random.Random quando o teste precisa de um valor exato."""

    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value


def build_session() -> Session:
    engine = build_engine("sqlite+pysqlite:///:memory:", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    return testing_session_local()


def _add_restaurant(db: Session, restaurant_id: str, owner_id: str, name: str) -> None:
    db.add(
        Restaurant(
            id=restaurant_id,
            owner_id=owner_id,
            name=name,
            street="Ringstraße",
            house_number="1",
            postal_code="1010",
            city="Wien",
            contact_phone="+43 1 000000",
        )
    )
    for day in range(7):
        db.add(RestaurantOpeningHour(restaurant_id=restaurant_id, day_of_week=day, open_time="00:00", close_time="23:59"))


def seed_marketplace(db: Session) -> None:
    db.add(RestaurantOwner(id=OWNER_ID, first_name="Anna", last_name="Huber", email="anna@example.com"))
    db.add(RestaurantOwner(id=OTHER_OWNER_ID, first_name="Ben", last_name="Wagner", email="ben@example.com"))
    db.flush()

    _add_restaurant(db, RESTAURANT_ID, OWNER_ID, "Gasthaus Huber")
    _add_restaurant(db, OTHER_RESTAURANT_ID, OTHER_OWNER_ID, "Pizzeria Wagner")
    db.flush()

    for dish in (DISH_SCHNITZEL, DISH_GOULASH, DISH_STRUDEL, DISH_PIZZA):
        db.add(Dish(**dish))

    db.add(Customer(id=CUSTOMER_ID, first_name="Clara", last_name="Maier", email="clara@example.com", **CUSTOMER_ADDRESS))
    db.add(
        Customer(
            id=OTHER_CUSTOMER_ID,
            first_name="David",
            last_name="Gruber",
            email="david@example.com",
            delivery_street="Praterstraße",
            delivery_house_number="5",
            delivery_postal_code="1020",
            delivery_city="Wien",
        )
    )
    db.commit()


def add_voucher(db: Session, **overrides) -> Voucher:
    fields = {
        "code": "SAVE10",
        "discount_type": DISCOUNT_PERCENTAGE,
        "discount_value": Decimal("10.00"),
        "is_active": True,
        "valid_from": datetime(2026, 1, 1, tzinfo=timezone.utc),
        "valid_until": datetime(2026, 12, 31, 23, 59, tzinfo=timezone.utc),
        "usage_limit": None,
        "usage_count": 0,
        "restaurant_id": None,
    }
    fields.update(overrides)
    voucher = Voucher(**fields)
    db.add(voucher)
    db.commit()
    db.refresh(voucher)
    return voucher
