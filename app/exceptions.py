"""
Domain errors for checkout, payment confirmation and statistics.

Each error carries the HTTP status it maps to; ``app.main`` renders every
``BookstoreError`` as ``{"detail": ...}`` with that status.
"""
from typing import Optional


class BookstoreError(Exception):
    status_code: int = 500
    default_detail: str = "Internal error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class GatewayError(BookstoreError):
    """Payment provider rejected the call or could not be reached."""
    status_code = 502
    default_detail = "Payment provider error"


class PaymentIncomplete(BookstoreError):
    status_code = 400
    default_detail = "Payment not completed"


class BookNotFound(BookstoreError):
    status_code = 404
    default_detail = "Book not found"


class OrderNotFound(BookstoreError):
    status_code = 404
    default_detail = "Order not found"


class SessionNotFound(BookstoreError):
    status_code = 404
    default_detail = "Checkout session not found"


class DuplicateTransaction(BookstoreError):
    """
    Raised by the order store when an insert loses the race on the unique
    transaction id. The payment service turns it into an idempotent success.
    """
    status_code = 409
    default_detail = "Transaction already recorded"

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction {transaction_id} already recorded")


class Unauthorized(BookstoreError):
    status_code = 401
    default_detail = "Could not validate credentials"


class Forbidden(BookstoreError):
    status_code = 403
    default_detail = "Forbidden access"


class InvalidAmount(BookstoreError):
    status_code = 400
    default_detail = "Invalid amount"


class OutOfStock(BookstoreError):
    status_code = 409
    default_detail = "Book is out of stock"


class BookUnavailable(BookstoreError):
    status_code = 409
    default_detail = "Book is not available for sale"


class OrderNotPayable(BookstoreError):
    """Checkout requested for an order that is already paid, cancelled or for another book."""
    status_code = 409
    default_detail = "Order cannot be paid"
