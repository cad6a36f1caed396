from types import SimpleNamespace

import pytest
from openpyxl import load_workbook

from app.constants.order_status import OrderStatus, PaymentStatus, UserRole
from app.exceptions import Forbidden, InvalidAmount, Unauthorized
from app.services import statistics_service

ADMIN = "admin@example.com"
SELLER = "seller@example.com"
CUSTOMER = "reader@example.com"


def test_revenue_excludes_unpaid_orders():
    orders = [
        SimpleNamespace(price="10.00", payment_status="paid"),
        SimpleNamespace(price="5.00", payment_status="pending"),
    ]
    assert statistics_service.total_revenue(orders) == 10.00


def test_revenue_mixes_strings_and_numbers():
    orders = [
        SimpleNamespace(price="10.10", payment_status="paid"),
        SimpleNamespace(price=4.9, payment_status="paid"),
        SimpleNamespace(price=5, payment_status="unpaid"),
    ]
    assert statistics_service.total_revenue(orders) == 15.0


def test_revenue_aborts_on_malformed_price():
    orders = [
        SimpleNamespace(price="10.00", payment_status="paid"),
        SimpleNamespace(price="ten", payment_status="paid"),
    ]
    with pytest.raises(InvalidAmount):
        statistics_service.total_revenue(orders)


@pytest.fixture()
def marketplace(make_user, make_book, make_order):
    make_user(ADMIN, UserRole.admin)
    make_user(SELLER, UserRole.librarian)
    make_user(CUSTOMER, UserRole.customer)

    dune = make_book(title="Dune", seller_email=SELLER)
    make_book(title="Emma", seller_email=SELLER)
    other = make_book(title="Ulysses", seller_email="other-seller@example.com")

    make_order(dune, CUSTOMER, price=12.5, order_status=OrderStatus.shipped, transaction_id="pi_1")
    make_order(dune, CUSTOMER, price=12.5, order_status=OrderStatus.delivered, transaction_id="pi_2")
    make_order(dune, CUSTOMER, price=12.5, payment_status=PaymentStatus.unpaid)
    make_order(dune, "else@example.com", price=12.5, order_status=OrderStatus.cancelled, transaction_id="pi_3")
    make_order(other, CUSTOMER, price=20.0, transaction_id="pi_4")


def test_admin_view(ctx, marketplace):
    stats = statistics_service.admin_statistics(ctx, ADMIN)

    assert stats.total_books == 3
    assert stats.total_orders == 5
    assert stats.total_users == 3
    assert stats.pending_orders == 2
    assert stats.total_revenue == 57.5


def test_librarian_view_is_scoped_to_own_catalog(ctx, marketplace):
    stats = statistics_service.librarian_statistics(ctx, SELLER)

    assert stats.shipped_orders == 1
    assert stats.delivered_orders == 1
    assert stats.pending_orders == 1
    assert stats.cancelled_orders == 1
    assert stats.total_books == 2
    assert stats.total_revenue == 37.5


def test_customer_view_is_scoped_to_own_orders(ctx, marketplace):
    stats = statistics_service.customer_statistics(ctx, CUSTOMER)

    assert stats.total_orders == 4
    assert stats.active_orders == 1
    assert stats.total_spent == 45.0


def test_customer_with_no_orders(ctx, make_user):
    make_user("new@example.com")

    stats = statistics_service.customer_statistics(ctx, "new@example.com")

    assert stats.total_orders == 0
    assert stats.active_orders == 0
    assert stats.total_spent == 0.0


@pytest.mark.parametrize(
    "view, actor",
    [
        (statistics_service.admin_statistics, CUSTOMER),
        (statistics_service.admin_statistics, SELLER),
        (statistics_service.librarian_statistics, CUSTOMER),
        (statistics_service.customer_statistics, ADMIN),
    ],
)
def test_role_mismatch_is_forbidden(ctx, marketplace, view, actor):
    with pytest.raises(Forbidden):
        view(ctx, actor)


def test_unknown_user_is_unauthorized(ctx, marketplace):
    with pytest.raises(Unauthorized):
        statistics_service.admin_statistics(ctx, "ghost@example.com")


def test_export_workbook(ctx, marketplace):
    stream = statistics_service.export_admin_statistics(ctx, ADMIN)

    wb = load_workbook(stream)
    overview = wb["Overview"]
    values = {row[0]: row[1] for row in overview.iter_rows(min_row=2, values_only=True)}
    assert values["Total Orders"] == 5
    assert values["Total Revenue"] == 57.5

    ledger = wb["Paid Orders"]
    transactions = [row[5] for row in ledger.iter_rows(min_row=2, values_only=True)]
    assert transactions == ["pi_1", "pi_2", "pi_3", "pi_4"]
