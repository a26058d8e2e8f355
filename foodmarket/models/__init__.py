from foodmarket.models.restaurant_owner import RestaurantOwner
from foodmarket.models.restaurant import Restaurant, RestaurantOpeningHour
from foodmarket.models.dish import Dish
from foodmarket.models.customer import Customer
from foodmarket.models.voucher import Voucher
from foodmarket.models.order import Order
from foodmarket.models.order_item import OrderItem
from foodmarket.models.order_status_history import OrderStatusHistory
from foodmarket.models.daily_order_counter import DailyOrderCounter
