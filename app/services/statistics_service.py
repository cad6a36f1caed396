import io
from datetime import datetime
from typing import Iterable

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from sqlmodel import Session, func, select

from app.constants.order_status import OrderStatus, PaymentStatus, UserRole
from app.models.book import Book
from app.models.order import Order
from app.models.user import User
from app.schemas.statistics_schemas import (
    AdminStatistics,
    CustomerStatistics,
    LibrarianStatistics,
)
from app.services.context import ServiceContext
from app.services.money import sum_amounts


def total_revenue(orders: Iterable) -> float:
    """Sum of normalized prices over paid orders; unpaid orders are ignored."""
    return sum_amounts(
        o.price for o in orders if o.payment_status == PaymentStatus.paid.value
    )


def _count(session: Session, query) -> int:
    return session.exec(query).one() or 0


def _paid_orders(session: Session, *where):
    return session.exec(
        select(Order).where(Order.payment_status == PaymentStatus.paid.value, *where)
    ).all()


def admin_statistics(ctx: ServiceContext, actor_email: str) -> AdminStatistics:
    ctx.users.require_role(actor_email, UserRole.admin)
    session = ctx.session

    return AdminStatistics(
        total_books=_count(session, select(func.count(Book.id))),
        total_orders=_count(session, select(func.count(Order.id))),
        total_users=_count(session, select(func.count(User.id))),
        pending_orders=_count(
            session,
            select(func.count(Order.id)).where(Order.order_status == OrderStatus.pending.value),
        ),
        total_revenue=total_revenue(_paid_orders(session)),
    )


def librarian_statistics(ctx: ServiceContext, actor_email: str) -> LibrarianStatistics:
    ctx.users.require_role(actor_email, UserRole.librarian)
    session = ctx.session

    rows = session.exec(
        select(Order.order_status, func.count(Order.id))
        .where(Order.seller_email == actor_email)
        .group_by(Order.order_status)
    ).all()
    buckets = {status: count for status, count in rows}

    return LibrarianStatistics(
        shipped_orders=buckets.get(OrderStatus.shipped.value, 0),
        pending_orders=buckets.get(OrderStatus.pending.value, 0),
        delivered_orders=buckets.get(OrderStatus.delivered.value, 0),
        cancelled_orders=buckets.get(OrderStatus.cancelled.value, 0),
        total_books=_count(
            session,
            select(func.count(Book.id)).where(Book.seller_email == actor_email),
        ),
        total_revenue=total_revenue(
            _paid_orders(session, Order.seller_email == actor_email)
        ),
    )


def customer_statistics(ctx: ServiceContext, actor_email: str) -> CustomerStatistics:
    ctx.users.require_role(actor_email, UserRole.customer)
    session = ctx.session

    return CustomerStatistics(
        total_orders=_count(
            session,
            select(func.count(Order.id)).where(Order.customer_email == actor_email),
        ),
        active_orders=_count(
            session,
            select(func.count(Order.id))
            .where(Order.customer_email == actor_email)
            .where(Order.order_status == OrderStatus.shipped.value),
        ),
        total_spent=total_revenue(
            _paid_orders(session, Order.customer_email == actor_email)
        ),
    )


def export_admin_statistics(ctx: ServiceContext, actor_email: str) -> io.BytesIO:
    """Admin overview plus the paid-order ledger as an xlsx workbook."""
    stats = admin_statistics(ctx, actor_email)

    wb = Workbook()
    thin = Border(
        left=Side(style="thin"),
        right=Side(style="thin"),
        top=Side(style="thin"),
        bottom=Side(style="thin"),
    )
    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill("solid", fgColor="4F81BD")
    center = Alignment(horizontal="center")
    currency = "$#,##0.00"

    def style_header(ws):
        for cell in ws[1]:
            cell.font = header_font
            cell.fill = header_fill
            cell.border = thin
            cell.alignment = center

    # Sheet 1: overview
    ws = wb.active
    ws.title = "Overview"
    ws.append(["Metric", "Value"])
    style_header(ws)

    for label, value in [
        ["Total Books", stats.total_books],
        ["Total Orders", stats.total_orders],
        ["Total Users", stats.total_users],
        ["Pending Orders", stats.pending_orders],
        ["Total Revenue", stats.total_revenue],
    ]:
        ws.append([label, value])
    ws.cell(row=ws.max_row, column=2).number_format = currency

    # Sheet 2: paid orders
    ws2 = wb.create_sheet("Paid Orders")
    ws2.append(["Order", "Book", "Customer", "Seller", "Price", "Transaction", "Paid At"])
    style_header(ws2)

    for o in sorted(_paid_orders(ctx.session), key=lambda o: o.id):
        ws2.append([
            o.id,
            o.book_title,
            o.customer_email,
            o.seller_email,
            o.price,
            o.transaction_id,
            o.paid_at,
        ])
        ws2.cell(row=ws2.max_row, column=5).number_format = currency

    ws2.column_dimensions["B"].width = 30
    ws2.column_dimensions["C"].width = 28
    ws2.column_dimensions["D"].width = 28
    ws2.column_dimensions["F"].width = 30

    stream = io.BytesIO()
    wb.save(stream)
    stream.seek(0)
    return stream


def export_filename() -> str:
    return f"admin_statistics_{datetime.utcnow().strftime('%Y%m%d')}.xlsx"
