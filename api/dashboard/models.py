# api/dashboard/models.py
"""
Pydantic models for dashboard responses.
"""
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict

from api.maintenance.models import EventRead


class CacheInfo(BaseModel):
    """When the numbers were computed and whether they came from the cache."""
    generated_at: datetime
    cached: bool


class DashboardOverview(CacheInfo):
    total_assets: int
    active_assets: int
    inactive_assets: int
    assets_by_state: dict[str, int]
    open_events: int
    events_this_month: int
    total_events: int
    overdue_assets: int
    # overdue_assets only covers the first overdue_scan_ceiling scheduled assets
    overdue_scan_ceiling: int
    overdue_truncated: bool
    recent_events: list[EventRead]


class MonthBucketRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    month: str
    start: date
    end: date
    count: int
    trend: str


class MonthlyTrend(CacheInfo):
    months: int
    buckets: list[MonthBucketRead]


class CategoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    count: int
    percentage: int


class CategoryBreakdownRead(CacheInfo):
    sample_size: int
    sample_ceiling: int
    basis: str
    items: list[CategoryRead]


class CacheInvalidated(BaseModel):
    removed: int
