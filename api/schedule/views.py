# api/schedule/views.py
"""
Upcoming maintenance endpoint.
"""
from fastapi import APIRouter, HTTPException, Query, status

from config import settings
from core.deps import CurrentUser, Store, resolve_branch
from core.errors import ValidationError
from .models import UpcomingRead, UpcomingResponse
from . import db_manager

router = APIRouter(prefix="/schedule", tags=["schedule"])


@router.get(
    "/upcoming",
    response_model=UpcomingResponse,
    summary="Assets ordered by how soon they need maintenance",
)
async def upcoming_maintenance_endpoint(
    current_user: CurrentUser,
    store: Store,
    branch_id: int | None = None,
    interval_days: int = Query(settings.SERVICE_INTERVAL_DAYS, ge=1, le=365),
) -> UpcomingResponse:
    """
    Every active asset with at least one completed maintenance, most urgent
    first. Computed from the ledger on each request.
    """
    branch_id = resolve_branch(current_user, branch_id)
    try:
        items = await db_manager.get_upcoming_maintenance(
            store,
            branch_id,
            interval_days=interval_days,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    by_urgency = {u.value: 0 for u in db_manager.Urgency}
    for item in items:
        by_urgency[item.urgency.value] += 1

    return UpcomingResponse(
        interval_days=interval_days,
        total=len(items),
        by_urgency=by_urgency,
        items=[UpcomingRead.model_validate(i) for i in items],
    )
