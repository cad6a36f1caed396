from datetime import datetime
from typing import List, Optional
import logging

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.constants.order_status import PaymentStatus
from app.exceptions import DuplicateTransaction, OrderNotFound
from app.models.order import Order

logger = logging.getLogger(__name__)


class OrderStore:
    def __init__(self, session: Session):
        self.session = session

    def get(self, order_id: int) -> Optional[Order]:
        return self.session.get(Order, order_id)

    def require(self, order_id: int) -> Order:
        order = self.get(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found")
        return order

    def find_by_transaction_id(self, transaction_id: str) -> Optional[Order]:
        return self.session.exec(
            select(Order).where(Order.transaction_id == transaction_id)
        ).first()

    def list_for_customer(self, customer_email: str) -> List[Order]:
        return self.session.exec(
            select(Order)
            .where(Order.customer_email == customer_email)
            .order_by(Order.created_at.desc(), Order.id.desc())
        ).all()

    def insert(self, order: Order) -> Order:
        """
        Persist a new order. A clash on the unique transaction id surfaces as
        DuplicateTransaction so callers can treat it as already committed.
        """
        self.session.add(order)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            if order.transaction_id and self.find_by_transaction_id(order.transaction_id):
                raise DuplicateTransaction(order.transaction_id)
            raise
        self.session.refresh(order)
        return order

    def mark_paid(
        self,
        order_id: int,
        *,
        transaction_id: str,
        session_id: Optional[str] = None,
        paid_at: Optional[datetime] = None,
    ) -> bool:
        """
        Flip an unpaid order to paid. Returns False when the order was already
        paid, leaving the stored transaction untouched.
        """
        paid_at = paid_at or datetime.utcnow()
        try:
            result = self.session.execute(
                update(Order)
                .where(Order.id == order_id)
                .where(Order.payment_status == PaymentStatus.unpaid.value)
                .values(
                    payment_status=PaymentStatus.paid.value,
                    transaction_id=transaction_id,
                    session_id=session_id,
                    paid_at=paid_at,
                    updated_at=paid_at,
                )
            )
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise DuplicateTransaction(transaction_id)

        return result.rowcount > 0

    def set_status(self, order: Order, order_status: str) -> Order:
        order.order_status = order_status
        order.updated_at = datetime.utcnow()
        self.session.add(order)
        self.session.commit()
        self.session.refresh(order)
        return order
