# api/dashboard/views.py
"""
Dashboard and aggregate statistics endpoints.

Responses are served through the dashboard cache and say when they were
computed. Nothing outside this router reads the cache.
"""
from fastapi import APIRouter, HTTPException, Query, status

from core.deps import AdminUser, CurrentUser, DashboardCache, Store, resolve_branch
from core.errors import ValidationError
from api.maintenance.models import EventRead
from .models import (
    CacheInvalidated,
    CategoryBreakdownRead,
    CategoryRead,
    DashboardOverview,
    MonthBucketRead,
    MonthlyTrend,
)
from . import db_manager

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get(
    "/overview",
    response_model=DashboardOverview,
    summary="Get high-level overview statistics",
)
async def get_overview_endpoint(
    current_user: CurrentUser,
    store: Store,
    cache: DashboardCache,
    branch_id: int | None = None,
) -> DashboardOverview:
    """
    Asset counts by state, open and monthly event counts, overdue assets and
    the latest events.
    """
    branch_id = resolve_branch(current_user, branch_id)

    async def _compute() -> dict:
        stats = await db_manager.get_overview(store, branch_id)
        stats["recent_events"] = [EventRead.model_validate(e) for e in stats["recent_events"]]
        return stats

    lookup = await cache.get_or_compute(("overview", branch_id), _compute)
    return DashboardOverview(
        **lookup.value,
        generated_at=lookup.stored_at,
        cached=lookup.cached,
    )


@router.get(
    "/trend",
    response_model=MonthlyTrend,
    summary="Events opened per month",
)
async def get_trend_endpoint(
    current_user: CurrentUser,
    store: Store,
    cache: DashboardCache,
    branch_id: int | None = None,
    months: int = Query(6, ge=1, le=db_manager.MAX_TREND_MONTHS),
) -> MonthlyTrend:
    """
    Exact monthly counts for the trailing ``months`` calendar months, oldest
    first. Each bucket carries the trend of the last two months.
    """
    branch_id = resolve_branch(current_user, branch_id)

    async def _compute() -> list[MonthBucketRead]:
        buckets = await db_manager.get_monthly_trend(store, branch_id, months)
        return [MonthBucketRead.model_validate(b) for b in buckets]

    try:
        lookup = await cache.get_or_compute(("trend", branch_id, months), _compute)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return MonthlyTrend(
        months=months,
        buckets=lookup.value,
        generated_at=lookup.stored_at,
        cached=lookup.cached,
    )


@router.get(
    "/categories",
    response_model=CategoryBreakdownRead,
    summary="Share of each maintenance type among recent events",
)
async def get_categories_endpoint(
    current_user: CurrentUser,
    store: Store,
    cache: DashboardCache,
    branch_id: int | None = None,
) -> CategoryBreakdownRead:
    """
    Percentages are computed over the most recent events only; ``basis``
    states how many.
    """
    branch_id = resolve_branch(current_user, branch_id)

    async def _compute() -> dict:
        breakdown = await db_manager.get_category_breakdown(store, branch_id)
        return {
            "sample_size": breakdown.sample_size,
            "sample_ceiling": breakdown.sample_ceiling,
            "basis": breakdown.basis,
            "items": [CategoryRead.model_validate(i) for i in breakdown.items],
        }

    lookup = await cache.get_or_compute(("categories", branch_id), _compute)
    return CategoryBreakdownRead(
        **lookup.value,
        generated_at=lookup.stored_at,
        cached=lookup.cached,
    )


@router.post(
    "/cache/invalidate",
    response_model=CacheInvalidated,
    summary="Drop cached dashboard figures",
)
async def invalidate_cache_endpoint(
    admin: AdminUser,
    cache: DashboardCache,
) -> CacheInvalidated:
    return CacheInvalidated(removed=cache.invalidate())
