# api/dashboard/db_manager.py
"""
Business logic for dashboard statistics.

Month buckets are counted by the database, one count query per bucket, so
the totals stay exact however large the ledger grows. The category breakdown
is computed from a bounded sample of recent events and says so in its output.
"""
import asyncio
import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import date

from config import settings
from db_models.asset import AssetState
from db_models.maintenance_event import MaintenanceEvent
from core.bulk_reader import read_all
from core.errors import ValidationError
from core.store import AssetQuery, EventOrder, EventQuery, EventStatus, PageSource
from api.schedule import db_manager as schedule_db

logger = logging.getLogger(__name__)

MAX_TREND_MONTHS = 24


def round_half_up(value: float) -> int:
    """Round .5 away from zero (Python's round() would give banker's rounding)."""
    return int(math.floor(value + 0.5))


def month_start(day: date) -> date:
    return day.replace(day=1)


def add_months(day: date, months: int) -> date:
    """First day of the month ``months`` away from ``day``'s month."""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def month_buckets(today: date, months: int) -> list[tuple[date, date]]:
    """
    ``months`` trailing calendar months ending with the current one, oldest
    first, as ``[start, next_start)`` ranges.
    """
    current = month_start(today)
    return [
        (add_months(current, -offset), add_months(current, -offset + 1))
        for offset in range(months - 1, -1, -1)
    ]


def trend_direction(counts: list[int]) -> str:
    """Compare the last two buckets: up, down or stable."""
    if len(counts) < 2:
        return "stable"
    last, previous = counts[-1], counts[-2]
    if last > previous:
        return "up"
    if last < previous:
        return "down"
    return "stable"


@dataclass(frozen=True)
class MonthBucket:
    month: str
    start: date
    end: date
    count: int
    trend: str


@dataclass(frozen=True)
class CategoryCount:
    name: str
    count: int
    percentage: int


@dataclass(frozen=True)
class CategoryBreakdown:
    sample_size: int
    sample_ceiling: int
    basis: str
    items: list[CategoryCount] = field(default_factory=list)


async def get_monthly_trend(
    source: PageSource,
    branch_id: int | None = None,
    months: int | None = None,
    *,
    today: date | None = None,
) -> list[MonthBucket]:
    """
    Events opened per calendar month over the trailing window.

    Every bucket carries the same trend value, computed from the last two
    buckets. Empty months count as zero.

    Raises:
        ValidationError: If ``months`` is outside 1..MAX_TREND_MONTHS
    """
    months = settings.TREND_MONTHS if months is None else months
    if not 1 <= months <= MAX_TREND_MONTHS:
        raise ValidationError(f"months must be between 1 and {MAX_TREND_MONTHS}, got {months}")

    buckets = month_buckets(today or date.today(), months)
    counts = await asyncio.gather(*(
        source.count(EventQuery(branch_id=branch_id, opened_from=start, opened_before=end))
        for start, end in buckets
    ))

    trend = trend_direction(list(counts))
    logger.debug("Monthly counts for branch=%s: %s (%s)", branch_id, list(counts), trend)
    return [
        MonthBucket(
            month=start.strftime("%Y-%m"),
            start=start,
            end=end,
            count=count,
            trend=trend,
        )
        for (start, end), count in zip(buckets, counts)
    ]


def group_by_category(events: list[MaintenanceEvent]) -> list[CategoryCount]:
    """Count events per maintenance type name; largest first, ties by name."""
    total = len(events)
    if total == 0:
        return []
    counter = Counter(event.maintenance_type.name for event in events)
    items = [
        CategoryCount(name=name, count=count, percentage=round_half_up(count / total * 100))
        for name, count in counter.items()
    ]
    items.sort(key=lambda item: (-item.count, item.name))
    return items


async def get_category_breakdown(
    source: PageSource,
    branch_id: int | None = None,
    sample_ceiling: int | None = None,
) -> CategoryBreakdown:
    """
    Share of each maintenance type among the most recent events.

    Only the latest ``sample_ceiling`` events are read, so percentages are an
    estimate over that sample, not the whole ledger.
    """
    sample_ceiling = settings.CATEGORY_SAMPLE_CEILING if sample_ceiling is None else sample_ceiling
    events = await read_all(
        source,
        EventQuery(branch_id=branch_id, order=EventOrder.OPENED_DESC),
        sample_ceiling,
    )
    return CategoryBreakdown(
        sample_size=len(events),
        sample_ceiling=sample_ceiling,
        basis=f"based on last {len(events)} events",
        items=group_by_category(events),
    )


async def get_overview(
    source: PageSource,
    branch_id: int | None = None,
    *,
    today: date | None = None,
    max_assets: int | None = None,
) -> dict:
    """
    Headline counts for the dashboard.

    ``overdue_assets`` is counted over at most ``max_assets`` scheduled assets
    (``UPCOMING_MAX_ASSETS`` by default). ``overdue_truncated`` is set when
    more scheduled assets exist than were scanned.
    """
    today = today or date.today()
    max_assets = settings.UPCOMING_MAX_ASSETS if max_assets is None else max_assets
    this_month = month_start(today)

    state_queries = [AssetQuery(branch_id=branch_id, states=(state,)) for state in AssetState]
    (
        total_assets,
        active_assets,
        open_events,
        events_this_month,
        total_events,
        scheduled_assets,
        *state_counts,
    ) = await asyncio.gather(
        source.count(AssetQuery(branch_id=branch_id)),
        source.count(AssetQuery(branch_id=branch_id, active=True)),
        source.count(EventQuery(branch_id=branch_id, status=EventStatus.OPEN)),
        source.count(EventQuery(branch_id=branch_id, opened_from=this_month)),
        source.count(EventQuery(branch_id=branch_id)),
        source.count(
            AssetQuery(branch_id=branch_id, states=schedule_db.SCHEDULED_STATES, active=True)
        ),
        *(source.count(q) for q in state_queries),
    )

    upcoming = await schedule_db.get_upcoming_maintenance(
        source, branch_id, today=today, max_assets=max_assets
    )
    overdue = sum(1 for item in upcoming if item.urgency == schedule_db.Urgency.CRITICAL)

    recent_events = await source.query(
        EventQuery(branch_id=branch_id, order=EventOrder.OPENED_DESC),
        limit=10,
        offset=0,
    )

    return {
        "total_assets": total_assets,
        "active_assets": active_assets,
        "inactive_assets": total_assets - active_assets,
        "assets_by_state": {
            state.value: count for state, count in zip(AssetState, state_counts)
        },
        "open_events": open_events,
        "events_this_month": events_this_month,
        "total_events": total_events,
        "overdue_assets": overdue,
        "overdue_scan_ceiling": max_assets,
        "overdue_truncated": scheduled_assets > max_assets,
        "recent_events": recent_events,
    }
