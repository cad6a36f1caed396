from app.models.user import User
from app.models.book import Book
from app.models.order import Order
from app.models.order_event import OrderEvent

# add ALL models here
