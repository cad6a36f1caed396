from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from app.constants.order_status import OrderStatus, PaymentStatus


class Order(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    book_id: int = Field(foreign_key="book.id", index=True)
    book_title: str

    # checkout session that paid this order
    session_id: Optional[str] = Field(default=None, index=True)

    customer_email: str = Field(index=True)
    seller_email: str = Field(index=True)

    quantity: int = Field(default=1)
    price: float

    order_status: str = Field(default=OrderStatus.pending.value, index=True)
    payment_status: str = Field(default=PaymentStatus.unpaid.value, index=True)

    # idempotency key: at most one order per payment transaction
    transaction_id: Optional[str] = Field(default=None, unique=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    paid_at: Optional[datetime] = None
    updated_at: datetime = Field(default_factory=datetime.utcnow)
