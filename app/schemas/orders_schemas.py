from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

from app.constants.order_status import OrderStatus


class PlaceOrderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    book_id: int = Field(alias="bookId")


class UpdateOrderStatusRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_status: OrderStatus = Field(alias="orderStatus")


class OrderRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: int
    book_id: int = Field(alias="bookId")
    book_title: str = Field(alias="bookTitle")
    customer_email: str = Field(alias="customerEmail")
    seller_email: str = Field(alias="sellerEmail")
    quantity: int
    price: float
    order_status: str = Field(alias="orderStatus")
    payment_status: str = Field(alias="paymentStatus")
    transaction_id: Optional[str] = Field(default=None, alias="transactionId")
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    created_at: datetime = Field(alias="createdAt")
    paid_at: Optional[datetime] = Field(default=None, alias="paidAt")


class OrderEventRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    event_type: str
    label: str
    meta: Optional[dict] = None
    created_by: str
    created_at: datetime
