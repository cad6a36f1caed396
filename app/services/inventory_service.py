from typing import Optional
import logging

from sqlalchemy import update
from sqlmodel import Session

from app.constants.order_status import BookStatus
from app.exceptions import BookNotFound, BookUnavailable
from app.models.book import Book

logger = logging.getLogger(__name__)


class InventoryStore:
    """Catalog access used by checkout: book lookup and stock decrements."""

    def __init__(self, session: Session):
        self.session = session

    def get_book(self, book_id: int) -> Optional[Book]:
        return self.session.get(Book, book_id)

    def require_book(self, book_id: int) -> Book:
        book = self.get_book(book_id)
        if not book:
            raise BookNotFound(f"Book {book_id} not found")
        return book

    def require_for_sale(self, book_id: int) -> Book:
        book = self.require_book(book_id)
        if book.status != BookStatus.published.value:
            raise BookUnavailable(f"{book.title} is not available for sale")
        return book

    def decrement_stock(self, book_id: int, quantity: int = 1) -> bool:
        """
        Take ``quantity`` units off the book in one conditional UPDATE.

        Returns False when the guard ``quantity >= requested`` fails; stock
        is never read and written back by the application.
        """
        result = self.session.execute(
            update(Book)
            .where(Book.id == book_id)
            .where(Book.quantity >= quantity)
            .values(quantity=Book.quantity - quantity)
        )
        self.session.commit()

        if result.rowcount == 0:
            logger.info(f"Stock guard failed for book {book_id} (requested {quantity})")
            return False

        logger.info(f"Reduced stock for book {book_id} by {quantity}")
        return True
