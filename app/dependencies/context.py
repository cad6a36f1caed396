from functools import lru_cache

from fastapi import Depends
from sqlmodel import Session

from app.config import settings
from app.database import get_session
from app.services.context import ServiceContext, build_context
from app.services.stripe_gateway import CheckoutGateway


@lru_cache(maxsize=1)
def get_gateway() -> CheckoutGateway:
    return CheckoutGateway(
        api_key=settings.stripe_secret_key,
        currency=settings.stripe_currency,
    )


def get_context(
    session: Session = Depends(get_session),
    gateway: CheckoutGateway = Depends(get_gateway),
) -> ServiceContext:
    return build_context(session, gateway)
