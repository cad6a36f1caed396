"""
Stripe Checkout adapter.

Wraps session creation and retrieval and translates SDK failures into the
domain errors of ``app.exceptions``. The API key is passed on every call so
the ``stripe`` module is never configured globally.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import logging

import stripe

from app.exceptions import GatewayError, SessionNotFound

logger = logging.getLogger(__name__)


@dataclass
class CheckoutItem:
    name: str
    author: str
    image_url: Optional[str]
    unit_amount_cents: int
    quantity: int = 1


@dataclass
class CheckoutSessionRef:
    id: str
    url: Optional[str]


@dataclass
class SessionSnapshot:
    session_id: str
    payment_status: str          # unpaid | paid | no_payment_required
    completion_status: Optional[str]  # open | complete | expired
    amount_total_cents: Optional[int]
    payment_intent_id: Optional[str]
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == "paid"


def _as_dict(obj: Any) -> Dict[str, Any]:
    # StripeObject is not a mapping on current SDK releases
    if obj is None:
        return {}
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return dict(obj)


def snapshot_from_session(session: Any) -> SessionSnapshot:
    data = _as_dict(session)
    payment_intent = data.get("payment_intent")
    if payment_intent is not None and not isinstance(payment_intent, str):
        # expanded PaymentIntent object
        payment_intent = _as_dict(payment_intent).get("id")

    return SessionSnapshot(
        session_id=data.get("id") or "",
        payment_status=data.get("payment_status") or "unpaid",
        completion_status=data.get("status"),
        amount_total_cents=data.get("amount_total"),
        payment_intent_id=payment_intent,
        metadata={k: str(v) for k, v in _as_dict(data.get("metadata")).items() if v is not None},
    )


class CheckoutGateway:
    def __init__(self, api_key: str, currency: str = "usd"):
        self.api_key = api_key
        self.currency = currency

    def create_session(
        self,
        *,
        item: CheckoutItem,
        customer_email: str,
        metadata: Dict[str, Any],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSessionRef:
        product_data: Dict[str, Any] = {
            "name": item.name,
            "description": f"by {item.author}" if item.author else None,
        }
        if item.image_url:
            product_data["images"] = [item.image_url]
        product_data = {k: v for k, v in product_data.items() if v is not None}

        try:
            session = stripe.checkout.Session.create(
                api_key=self.api_key,
                mode="payment",
                line_items=[
                    {
                        "price_data": {
                            "currency": self.currency,
                            "unit_amount": item.unit_amount_cents,
                            "product_data": product_data,
                        },
                        "quantity": item.quantity,
                    }
                ],
                customer_email=customer_email,
                # stripe metadata values must be strings
                metadata={k: str(v) for k, v in metadata.items() if v is not None},
                success_url=success_url,
                cancel_url=cancel_url,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe rejected checkout session: {e}")
            raise GatewayError(f"Could not create checkout session: {e.user_message or e}")

        data = _as_dict(session)
        return CheckoutSessionRef(id=data.get("id"), url=data.get("url"))

    def retrieve_session(self, session_id: str) -> SessionSnapshot:
        try:
            session = stripe.checkout.Session.retrieve(session_id, api_key=self.api_key)
        except stripe.InvalidRequestError as e:
            if e.code == "resource_missing":
                raise SessionNotFound(f"Checkout session {session_id} not found")
            logger.error(f"Stripe rejected session lookup {session_id}: {e}")
            raise GatewayError(f"Could not retrieve checkout session: {e.user_message or e}")
        except stripe.StripeError as e:
            logger.exception(f"Stripe error retrieving session {session_id}")
            raise GatewayError(f"Could not retrieve checkout session: {e.user_message or e}")

        return snapshot_from_session(session)
