from sqlmodel import SQLModel, Field
from sqlalchemy import CheckConstraint
from typing import Optional
from datetime import datetime

from app.constants.order_status import BookStatus


class Book(SQLModel, table=True):
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_book_quantity_non_negative"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    author: str
    image: Optional[str] = None

    # legacy catalog writes keep prices as decimal strings ("12.50");
    # always read through app.services.money.normalize_amount
    price: str
    quantity: int = Field(default=0)
    status: str = Field(default=BookStatus.published.value)

    seller_email: str = Field(index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def in_stock(self) -> bool:
        return self.quantity > 0
