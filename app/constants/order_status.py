from enum import Enum


class OrderStatus(str, Enum):
    pending = "pending"
    shipped = "shipped"
    delivered = "delivered"
    cancelled = "cancelled"


class PaymentStatus(str, Enum):
    unpaid = "unpaid"
    paid = "paid"


class BookStatus(str, Enum):
    draft = "draft"
    published = "published"
    unpublished = "unpublished"


class UserRole(str, Enum):
    customer = "customer"
    librarian = "librarian"
    admin = "admin"
