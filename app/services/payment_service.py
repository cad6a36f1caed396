"""
Checkout and payment reconciliation.

A checkout session is created with the payment provider, and a later
confirmation turns the paid session into exactly one order. Two flows are
supported behind ``confirm_payment``:

* pre-created order: ``place_order`` reserves stock and stores a pending,
  unpaid order whose id travels in the session metadata as ``orderId``;
  confirmation only flips it to paid.
* order on payment: the session metadata only names the ``bookId``;
  confirmation inserts the order and takes one unit off the stock.

Both flows go through the same idempotency gate (lookup by transaction id)
and rely on the unique ``order.transaction_id`` column to settle concurrent
confirmations of the same payment.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
import logging

from app.config import settings
from app.constants.order_status import OrderStatus, PaymentStatus, UserRole
from app.exceptions import (
    BookNotFound,
    DuplicateTransaction,
    Forbidden,
    InvalidAmount,
    OrderNotFound,
    OrderNotPayable,
    OutOfStock,
    PaymentIncomplete,
)
from app.models.order import Order
from app.models.order_event import OrderEvent
from app.schemas.checkout_schemas import CheckoutSessionRequest
from app.services.context import ServiceContext
from app.services.money import normalize_amount, to_minor_units
from app.services.order_event_service import (
    OrderEventType,
    get_order_timeline,
    log_order_event,
)
from app.services.stripe_gateway import CheckoutItem, CheckoutSessionRef, SessionSnapshot

logger = logging.getLogger(__name__)

SUCCESS_PATH = "/dashboard/payment-success?session_id={CHECKOUT_SESSION_ID}"
CANCEL_PATH = "/dashboard/payment-cancelled"


@dataclass
class ConfirmationResult:
    transaction_id: str
    order_id: int
    created: bool = True


# ---------------------------------------------------------------------------
# checkout
# ---------------------------------------------------------------------------

def create_checkout_session(
    ctx: ServiceContext,
    request: CheckoutSessionRequest,
    actor_email: str,
) -> CheckoutSessionRef:
    if request.customer.email != actor_email:
        raise Forbidden("Checkout customer does not match the signed-in user")

    book = ctx.inventory.require_for_sale(request.book_id)

    # the catalog price is charged; the client copy is only checked against it
    unit_amount = to_minor_units(book.price)
    if to_minor_units(request.price) != unit_amount:
        raise InvalidAmount(
            f"Price {request.price} does not match the current price of {book.title}"
        )

    if request.order_id is not None:
        order = ctx.orders.require(request.order_id)
        if order.customer_email != actor_email:
            raise Forbidden("Order belongs to another customer")
        _ensure_payable(order, book.id)

    metadata = {
        "bookId": book.id,
        "customerEmail": actor_email,
        "orderId": request.order_id,
    }

    ref = ctx.gateway.create_session(
        item=CheckoutItem(
            name=book.title,
            author=book.author,
            image_url=book.image or request.image,
            unit_amount_cents=unit_amount,
            quantity=request.quantity,
        ),
        customer_email=actor_email,
        metadata=metadata,
        success_url=f"{settings.client_url}{SUCCESS_PATH}",
        cancel_url=f"{settings.client_url}{CANCEL_PATH}",
    )

    logger.info(f"Checkout session {ref.id} created for book {book.id} by {actor_email}")
    return ref


def _ensure_payable(order: Order, book_id: int):
    if order.book_id != book_id:
        raise OrderNotPayable(f"Order {order.id} is not for book {book_id}")
    if order.payment_status == PaymentStatus.paid.value:
        raise OrderNotPayable(f"Order {order.id} is already paid")
    if order.order_status == OrderStatus.cancelled.value:
        raise OrderNotPayable(f"Order {order.id} is cancelled")


def place_order(ctx: ServiceContext, book_id: int, customer_email: str) -> Order:
    """Pre-create a pending order and reserve one unit of stock for it."""
    book = ctx.inventory.require_for_sale(book_id)
    price = normalize_amount(book.price)

    if not ctx.inventory.decrement_stock(book.id):
        raise OutOfStock(f"{book.title} is out of stock")

    order = ctx.orders.insert(
        Order(
            book_id=book.id,
            book_title=book.title,
            customer_email=customer_email,
            seller_email=book.seller_email,
            quantity=1,
            price=price,
            order_status=OrderStatus.pending.value,
            payment_status=PaymentStatus.unpaid.value,
        )
    )

    log_order_event(
        ctx.session,
        order.id,
        OrderEventType.PLACED,
        "Order placed",
        created_by=customer_email,
    )
    logger.info(f"Order {order.id} placed for book {book.id} by {customer_email}")
    return order


# ---------------------------------------------------------------------------
# confirmation
# ---------------------------------------------------------------------------

def confirm_payment(ctx: ServiceContext, session_id: str) -> ConfirmationResult:
    """
    Single source of truth for completing payments.

    Safe to call any number of times, concurrently or not, for the same
    checkout session: only the first call creates or updates an order.
    """
    snapshot = ctx.gateway.retrieve_session(session_id)

    if not snapshot.is_paid:
        raise PaymentIncomplete(
            f"Payment not completed (payment_status={snapshot.payment_status})"
        )

    transaction_id = snapshot.payment_intent_id or snapshot.session_id

    # idempotency gate
    existing = ctx.orders.find_by_transaction_id(transaction_id)
    if existing:
        logger.info(f"Payment {transaction_id} already recorded on order {existing.id}")
        return ConfirmationResult(transaction_id, existing.id, created=False)

    if snapshot.metadata.get("orderId"):
        result = _confirm_pre_created_order(ctx, snapshot, transaction_id)
    else:
        result = _confirm_order_on_payment(ctx, snapshot, transaction_id)

    if result.created:
        log_order_event(
            ctx.session,
            result.order_id,
            OrderEventType.PAID,
            "Payment confirmed",
            meta={"transaction_id": transaction_id, "session_id": snapshot.session_id},
        )
    return result


def _parse_order_id(raw: str) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise OrderNotFound(f"Order {raw} not found")


def _confirm_pre_created_order(
    ctx: ServiceContext,
    snapshot: SessionSnapshot,
    transaction_id: str,
) -> ConfirmationResult:
    order = ctx.orders.require(_parse_order_id(snapshot.metadata["orderId"]))

    if order.order_status == OrderStatus.cancelled.value:
        logger.warning(f"Payment {transaction_id} received for cancelled order {order.id}")

    try:
        updated = ctx.orders.mark_paid(
            order.id,
            transaction_id=transaction_id,
            session_id=snapshot.session_id,
            paid_at=datetime.utcnow(),
        )
    except DuplicateTransaction:
        return _winner(ctx, transaction_id)

    if not updated:
        ctx.session.refresh(order)
        if order.transaction_id != transaction_id:
            # a second payment was taken for an order that is already paid
            logger.warning(
                f"Order {order.id} already paid by {order.transaction_id}; "
                f"payment {transaction_id} was not applied and needs a refund"
            )
        else:
            logger.info(f"Order {order.id} already paid by {order.transaction_id}")
        return ConfirmationResult(order.transaction_id or transaction_id, order.id, created=False)

    logger.info(f"Order {order.id} paid with {transaction_id}")
    return ConfirmationResult(transaction_id, order.id)


def _confirm_order_on_payment(
    ctx: ServiceContext,
    snapshot: SessionSnapshot,
    transaction_id: str,
) -> ConfirmationResult:
    book = ctx.inventory.require_book(_parse_book_id(snapshot.metadata.get("bookId")))

    price = normalize_amount(book.price)
    if (
        snapshot.amount_total_cents is not None
        and snapshot.amount_total_cents != to_minor_units(price)
    ):
        logger.warning(
            f"Payment {transaction_id} charged {snapshot.amount_total_cents} cents "
            f"for book {book.id} priced {price}"
        )

    now = datetime.utcnow()
    try:
        order = ctx.orders.insert(
            Order(
                book_id=book.id,
                book_title=book.title,
                session_id=snapshot.session_id,
                customer_email=snapshot.metadata.get("customerEmail", ""),
                seller_email=book.seller_email,
                quantity=1,
                price=price,
                order_status=OrderStatus.pending.value,
                payment_status=PaymentStatus.paid.value,
                transaction_id=transaction_id,
                created_at=now,
                paid_at=now,
                updated_at=now,
            )
        )
    except DuplicateTransaction:
        return _winner(ctx, transaction_id)

    if not ctx.inventory.decrement_stock(book.id):
        # the customer has paid; keep the order and flag it for follow-up
        logger.warning(
            f"Order {order.id} committed for book {book.id} with no stock left "
            f"(transaction {transaction_id})"
        )

    logger.info(f"Order {order.id} created from payment {transaction_id}")
    return ConfirmationResult(transaction_id, order.id)


def _parse_book_id(raw: Optional[str]) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise BookNotFound(f"Book {raw} not found")


def _winner(ctx: ServiceContext, transaction_id: str) -> ConfirmationResult:
    order = ctx.orders.find_by_transaction_id(transaction_id)
    if order is None:
        raise DuplicateTransaction(transaction_id)
    logger.info(f"Concurrent confirmation of {transaction_id} resolved to order {order.id}")
    return ConfirmationResult(transaction_id, order.id, created=False)


# ---------------------------------------------------------------------------
# order management
# ---------------------------------------------------------------------------

def _authorize_order_actor(
    ctx: ServiceContext,
    order: Order,
    actor_email: str,
    allow_customer: bool,
):
    if actor_email == order.seller_email:
        return
    if allow_customer and actor_email == order.customer_email:
        return
    if ctx.users.resolve_role(actor_email) == UserRole.admin:
        return
    raise Forbidden("Not authorized to change this order")


def cancel_order(ctx: ServiceContext, order_id: int, actor_email: str) -> Order:
    order = ctx.orders.require(order_id)
    _authorize_order_actor(ctx, order, actor_email, allow_customer=True)

    previous = order.order_status
    # no transition graph and no restock
    order = ctx.orders.set_status(order, OrderStatus.cancelled.value)

    log_order_event(
        ctx.session,
        order.id,
        OrderEventType.CANCELLED,
        "Order cancelled",
        created_by=actor_email,
        meta={"from": previous},
    )
    logger.info(f"Order {order.id} cancelled by {actor_email} (was {previous})")
    return order


def update_order_status(
    ctx: ServiceContext,
    order_id: int,
    new_status: OrderStatus,
    actor_email: str,
) -> Order:
    order = ctx.orders.require(order_id)
    _authorize_order_actor(ctx, order, actor_email, allow_customer=False)

    previous = order.order_status
    order = ctx.orders.set_status(order, OrderStatus(new_status).value)

    log_order_event(
        ctx.session,
        order.id,
        OrderEventType.STATUS_UPDATED,
        f"Status changed to {order.order_status}",
        created_by=actor_email,
        meta={"from": previous, "to": order.order_status},
    )
    return order


def list_customer_orders(ctx: ServiceContext, customer_email: str) -> List[Order]:
    return ctx.orders.list_for_customer(customer_email)


def order_timeline(ctx: ServiceContext, order_id: int, actor_email: str) -> List[OrderEvent]:
    order = ctx.orders.require(order_id)
    _authorize_order_actor(ctx, order, actor_email, allow_customer=True)
    return get_order_timeline(ctx.session, order.id)
