from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from app.dependencies.auth import get_current_email
from app.dependencies.context import get_context
from app.schemas.statistics_schemas import (
    AdminStatistics,
    CustomerStatistics,
    LibrarianStatistics,
)
from app.services import statistics_service
from app.services.context import ServiceContext

router = APIRouter()


@router.get("/admin-statistics", response_model=AdminStatistics)
def admin_statistics(
    ctx: ServiceContext = Depends(get_context),
    email: str = Depends(get_current_email),
):
    return statistics_service.admin_statistics(ctx, email)


@router.get("/admin-statistics/export")
def export_admin_statistics(
    ctx: ServiceContext = Depends(get_context),
    email: str = Depends(get_current_email),
):
    stream = statistics_service.export_admin_statistics(ctx, email)
    filename = statistics_service.export_filename()

    return StreamingResponse(
        stream,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/librarian-statistics", response_model=LibrarianStatistics)
def librarian_statistics(
    ctx: ServiceContext = Depends(get_context),
    email: str = Depends(get_current_email),
):
    return statistics_service.librarian_statistics(ctx, email)


@router.get("/customer-statistics", response_model=CustomerStatistics)
def customer_statistics(
    ctx: ServiceContext = Depends(get_context),
    email: str = Depends(get_current_email),
):
    return statistics_service.customer_statistics(ctx, email)
