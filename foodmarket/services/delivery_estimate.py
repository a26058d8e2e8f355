from __future__ import annotations

import math
import random
from typing import Iterable

from foodmarket.core.config import DELIVERY_FLAT_MINUTES, RUSH_HOUR_END, RUSH_HOUR_START
from foodmarket.core.timeutils import Clock, business_now
from foodmarket.models.dish import Dish

RUSH_SURCHARGE_MIN = 5
RUSH_SURCHARGE_SPREAD = 6  # 5..10 minutos


class DeliveryEstimator:
    """Estimativa única, feita na criação do pedido.

    Os pratos são preparados em paralelo, então a base é o prato mais demorado,
    não a soma.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        rng: random.Random | None = None,
        rush_hour_start: int = RUSH_HOUR_START,
        rush_hour_end: int = RUSH_HOUR_END,
        delivery_minutes: int = DELIVERY_FLAT_MINUTES,
    ):
        self.clock = clock or business_now
        self.rng = rng or random.Random()
        self.rush_hour_start = rush_hour_start
        self.rush_hour_end = rush_hour_end
        self.delivery_minutes = delivery_minutes

    def is_rush_hour(self) -> bool:
        return self.rush_hour_start <= self.clock().hour < self.rush_hour_end

    def rush_surcharge(self) -> int:
        if not self.is_rush_hour():
            return 0
        return math.floor(self.rng.random() * RUSH_SURCHARGE_SPREAD) + RUSH_SURCHARGE_MIN

    def estimate(self, dishes: Iterable[Dish]) -> int:
        cooking_times = [int(dish.cooking_time_minutes or 0) for dish in dishes]
        base = max(cooking_times, default=0)
        return base + self.rush_surcharge() + self.delivery_minutes
