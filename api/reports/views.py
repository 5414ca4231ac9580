# api/reports/views.py
"""
Report export endpoints.
"""
from datetime import date

from fastapi import APIRouter, HTTPException, Query, status

from config import settings
from core.deps import CurrentUser, Store, resolve_branch
from core.errors import ValidationError
from core.store import EventStatus
from .models import MaintenanceReportRead, MaintenanceReportRow
from . import db_manager

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get(
    "/maintenance",
    response_model=MaintenanceReportRead,
    summary="Export maintenance events",
)
async def maintenance_report_endpoint(
    current_user: CurrentUser,
    store: Store,
    branch_id: int | None = None,
    asset_id: int | None = None,
    maintenance_type_id: int | None = None,
    performed_by_id: int | None = None,
    opened_from: date | None = None,
    opened_before: date | None = None,
    status_filter: EventStatus = Query(EventStatus.ANY, alias="status"),
    limit: int = Query(settings.REPORT_MAX_RECORDS, ge=1, le=settings.REPORT_MAX_RECORDS),
) -> MaintenanceReportRead:
    """
    Flat rows for spreadsheets, newest first. Read fresh on every request.
    """
    branch_id = resolve_branch(current_user, branch_id)
    if opened_from and opened_before and opened_before <= opened_from:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="opened_before must be after opened_from",
        )

    filters = db_manager.ReportFilters(
        branch_id=branch_id,
        asset_id=asset_id,
        maintenance_type_id=maintenance_type_id,
        performed_by_id=performed_by_id,
        opened_from=opened_from,
        opened_before=opened_before,
        status=status_filter,
    )
    try:
        report = await db_manager.build_maintenance_report(store, filters, limit)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return MaintenanceReportRead(
        total_matching=report.total_matching,
        returned=len(report.rows),
        truncated=report.truncated,
        rows=[MaintenanceReportRow(**row) for row in report.rows],
    )
