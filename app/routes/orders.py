from typing import List

from fastapi import APIRouter, Depends, status

from app.dependencies.auth import get_current_email
from app.dependencies.context import get_context
from app.schemas.orders_schemas import (
    OrderEventRead,
    OrderRead,
    PlaceOrderRequest,
    UpdateOrderStatusRequest,
)
from app.services import payment_service
from app.services.context import ServiceContext

router = APIRouter()


@router.post("", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
def place_order(
    payload: PlaceOrderRequest,
    ctx: ServiceContext = Depends(get_context),
    email: str = Depends(get_current_email),
):
    order = payment_service.place_order(ctx, payload.book_id, email)
    return OrderRead.model_validate(order)


@router.get("", response_model=List[OrderRead])
def my_orders(
    ctx: ServiceContext = Depends(get_context),
    email: str = Depends(get_current_email),
):
    return [
        OrderRead.model_validate(o)
        for o in payment_service.list_customer_orders(ctx, email)
    ]


@router.get("/{order_id}/timeline", response_model=List[OrderEventRead])
def order_timeline(
    order_id: int,
    ctx: ServiceContext = Depends(get_context),
    email: str = Depends(get_current_email),
):
    return [
        OrderEventRead.model_validate(e)
        for e in payment_service.order_timeline(ctx, order_id, email)
    ]


@router.patch("/cancel/{order_id}", response_model=OrderRead)
def cancel_order(
    order_id: int,
    ctx: ServiceContext = Depends(get_context),
    email: str = Depends(get_current_email),
):
    order = payment_service.cancel_order(ctx, order_id, email)
    return OrderRead.model_validate(order)


@router.patch("/update-status/{order_id}", response_model=OrderRead)
def update_order_status(
    order_id: int,
    payload: UpdateOrderStatusRequest,
    ctx: ServiceContext = Depends(get_context),
    email: str = Depends(get_current_email),
):
    order = payment_service.update_order_status(ctx, order_id, payload.order_status, email)
    return OrderRead.model_validate(order)
