from fastapi import APIRouter, Depends

from app.dependencies.auth import get_current_email
from app.dependencies.context import get_context
from app.schemas.checkout_schemas import (
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    PaymentSuccessRequest,
    PaymentSuccessResponse,
)
from app.services import payment_service
from app.services.context import ServiceContext

router = APIRouter()


@router.post("/create-checkout-session", response_model=CheckoutSessionResponse)
def create_checkout_session(
    payload: CheckoutSessionRequest,
    ctx: ServiceContext = Depends(get_context),
    email: str = Depends(get_current_email),
):
    ref = payment_service.create_checkout_session(ctx, payload, email)
    return CheckoutSessionResponse(url=ref.url, session_id=ref.id)


@router.post("/payment-success", response_model=PaymentSuccessResponse)
def payment_success(
    payload: PaymentSuccessRequest,
    ctx: ServiceContext = Depends(get_context),
):
    # idempotent: the success page may be reloaded any number of times
    result = payment_service.confirm_payment(ctx, payload.session_id)
    return PaymentSuccessResponse(
        transaction_id=result.transaction_id,
        order_id=result.order_id,
    )
