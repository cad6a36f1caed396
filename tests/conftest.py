import os

# settings are read at import time
os.environ.setdefault("POSTGRES_USER", "test")
os.environ.setdefault("POSTGRES_PASSWORD", "test")
os.environ.setdefault("POSTGRES_DB", "test")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URI"] = "sqlite://"
os.environ["ENV"] = "test"
os.environ.setdefault("CLIENT_URL", "http://localhost:5173")

from dataclasses import replace
from typing import Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.constants.order_status import BookStatus, OrderStatus, PaymentStatus, UserRole
from app.database import get_session
from app.dependencies.context import get_gateway
from app.exceptions import SessionNotFound
from app.main import app as fastapi_app
from app.models import Book, Order, User
from app.services.context import build_context
from app.services.stripe_gateway import CheckoutSessionRef, SessionSnapshot
from app.utils.token import create_access_token


# mark tests by directory
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


class FakeCheckoutGateway:
    """In-memory stand-in for the Stripe checkout adapter."""

    def __init__(self):
        self.sessions: Dict[str, SessionSnapshot] = {}
        self.created: List[dict] = []
        self._counter = 0

    def create_session(self, *, item, customer_email, metadata, success_url, cancel_url):
        self._counter += 1
        session_id = f"cs_test_{self._counter}"
        self.sessions[session_id] = SessionSnapshot(
            session_id=session_id,
            payment_status="unpaid",
            completion_status="open",
            amount_total_cents=item.unit_amount_cents * item.quantity,
            payment_intent_id=None,
            metadata={k: str(v) for k, v in metadata.items() if v is not None},
        )
        self.created.append(
            {
                "id": session_id,
                "item": item,
                "customer_email": customer_email,
                "metadata": metadata,
                "success_url": success_url,
                "cancel_url": cancel_url,
            }
        )
        return CheckoutSessionRef(id=session_id, url=f"https://checkout.stripe.test/{session_id}")

    def pay(self, session_id: str, payment_intent_id: Optional[str]):
        snapshot = self.sessions[session_id]
        snapshot.payment_status = "paid"
        snapshot.completion_status = "complete"
        snapshot.payment_intent_id = payment_intent_id

    def add_paid_session(
        self,
        session_id: str,
        *,
        book_id: int,
        customer_email: str,
        amount_cents: Optional[int],
        payment_intent_id: Optional[str],
        order_id: Optional[int] = None,
    ):
        metadata = {"bookId": str(book_id), "customerEmail": customer_email}
        if order_id is not None:
            metadata["orderId"] = str(order_id)
        self.sessions[session_id] = SessionSnapshot(
            session_id=session_id,
            payment_status="paid",
            completion_status="complete",
            amount_total_cents=amount_cents,
            payment_intent_id=payment_intent_id,
            metadata=metadata,
        )

    def retrieve_session(self, session_id: str) -> SessionSnapshot:
        if session_id not in self.sessions:
            raise SessionNotFound(f"Checkout session {session_id} not found")
        return replace(self.sessions[session_id], metadata=dict(self.sessions[session_id].metadata))


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def session(engine) -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


@pytest.fixture()
def gateway() -> FakeCheckoutGateway:
    return FakeCheckoutGateway()


@pytest.fixture()
def ctx(session, gateway):
    return build_context(session, gateway)


# ---------------------------------------------------------------------------
# seed helpers
# ---------------------------------------------------------------------------

@pytest.fixture()
def make_user(session):
    def _make_user(email: str, role: UserRole = UserRole.customer) -> User:
        user = User(email=email, name=email.split("@")[0], role=role.value)
        session.add(user)
        session.commit()
        session.refresh(user)
        return user
    return _make_user


@pytest.fixture()
def make_book(session):
    def _make_book(
        title: str = "Dune",
        price="12.50",
        quantity: int = 5,
        seller_email: str = "seller@example.com",
    ) -> Book:
        book = Book(
            title=title,
            author="Frank Herbert",
            image="https://img.test/dune.jpg",
            price=price,
            quantity=quantity,
            status=BookStatus.published.value,
            seller_email=seller_email,
        )
        session.add(book)
        session.commit()
        session.refresh(book)
        return book
    return _make_book


@pytest.fixture()
def make_order(session):
    def _make_order(
        book: Book,
        customer_email: str = "reader@example.com",
        price: float = 12.5,
        order_status: OrderStatus = OrderStatus.pending,
        payment_status: PaymentStatus = PaymentStatus.paid,
        transaction_id: Optional[str] = None,
    ) -> Order:
        order = Order(
            book_id=book.id,
            book_title=book.title,
            customer_email=customer_email,
            seller_email=book.seller_email,
            price=price,
            order_status=order_status.value,
            payment_status=payment_status.value,
            transaction_id=transaction_id,
        )
        session.add(order)
        session.commit()
        session.refresh(order)
        return order
    return _make_order


@pytest.fixture()
def book(make_book):
    return make_book()


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

@pytest.fixture()
def app():
    return fastapi_app


@pytest.fixture()
def client(app, engine, gateway) -> Generator[TestClient, None, None]:
    def _override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _override_session
    app.dependency_overrides[get_gateway] = lambda: gateway
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers():
    def _auth_headers(email: str) -> Dict[str, str]:
        token = create_access_token({"email": email})
        return {"Authorization": f"Bearer {token}"}
    return _auth_headers
