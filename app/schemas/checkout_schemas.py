# app/schemas/checkout_schemas.py
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional, Union


class CheckoutCustomer(BaseModel):
    email: EmailStr


class CheckoutSessionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    author: str
    image: Optional[str] = None
    price: Union[str, float]     # legacy catalog sends decimal strings
    quantity: int = Field(default=1, ge=1, le=1)  # one book per order
    customer: CheckoutCustomer
    book_id: int = Field(alias="bookId")
    order_id: Optional[int] = Field(default=None, alias="orderId")


class CheckoutSessionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: Optional[str]
    session_id: str = Field(alias="sessionId")


class PaymentSuccessRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId", min_length=1)


class PaymentSuccessResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    transaction_id: str = Field(alias="transactionId")
    order_id: int = Field(alias="orderId")
