# api/schedule/db_manager.py
"""
Next-due estimates and urgency tiers for assets in service.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum

from config import settings
from db_models.asset import Asset, AssetState
from core.bulk_reader import read_all
from core.errors import ValidationError
from core.store import AssetQuery, EventOrder, EventQuery, EventStatus, PageSource

logger = logging.getLogger(__name__)

# Only assets that will need another maintenance are estimated
SCHEDULED_STATES = (AssetState.AVAILABLE, AssetState.IN_MAINTENANCE)


class Urgency(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def severity(self) -> int:
        """Sort rank; lower is more urgent."""
        return _SEVERITY[self]


_SEVERITY = {
    Urgency.CRITICAL: 0,
    Urgency.HIGH: 1,
    Urgency.MEDIUM: 2,
    Urgency.LOW: 3,
}


def classify_urgency(days_remaining: int) -> Urgency:
    """Overdue is CRITICAL, 0-3 days HIGH, 4-7 days MEDIUM, anything later LOW."""
    if days_remaining < 0:
        return Urgency.CRITICAL
    if days_remaining <= 3:
        return Urgency.HIGH
    if days_remaining <= 7:
        return Urgency.MEDIUM
    return Urgency.LOW


@dataclass(frozen=True)
class UpcomingMaintenance:
    asset_id: int
    asset_code: str
    branch_id: int
    asset_type_id: int
    asset_type_name: str | None
    state: str
    last_closed: date
    due_date: date
    days_remaining: int
    urgency: Urgency


def estimate(asset: Asset, last_closed: date, today: date, interval_days: int) -> UpcomingMaintenance:
    due_date = last_closed + timedelta(days=interval_days)
    days_remaining = (due_date - today).days
    return UpcomingMaintenance(
        asset_id=asset.id,
        asset_code=asset.asset_code,
        branch_id=asset.branch_id,
        asset_type_id=asset.asset_type_id,
        asset_type_name=asset.asset_type.name if asset.asset_type is not None else None,
        state=asset.state,
        last_closed=last_closed,
        due_date=due_date,
        days_remaining=days_remaining,
        urgency=classify_urgency(days_remaining),
    )


def sort_by_urgency(items: list[UpcomingMaintenance]) -> list[UpcomingMaintenance]:
    """Most urgent first, then fewest days remaining. Stable for full ties."""
    return sorted(items, key=lambda item: (item.urgency.severity, item.days_remaining))


async def _last_closed_date(source: PageSource, asset_id: int) -> date | None:
    rows = await read_all(
        source,
        EventQuery(asset_id=asset_id, status=EventStatus.CLOSED, order=EventOrder.CLOSED_DESC),
        max_records=1,
    )
    return rows[0].date_closed if rows else None


async def get_upcoming_maintenance(
    source: PageSource,
    branch_id: int | None = None,
    *,
    today: date | None = None,
    interval_days: int | None = None,
    max_assets: int | None = None,
    concurrency: int | None = None,
) -> list[UpcomingMaintenance]:
    """
    Estimate the next due date of every active AVAILABLE or IN_MAINTENANCE asset.

    Due date is the latest close date plus ``interval_days``. Assets that
    were never maintained have nothing to estimate from and are left out.
    Per-asset history reads are independent and run concurrently.
    """
    today = today or date.today()
    interval_days = settings.SERVICE_INTERVAL_DAYS if interval_days is None else interval_days
    max_assets = settings.UPCOMING_MAX_ASSETS if max_assets is None else max_assets
    concurrency = settings.READ_CONCURRENCY if concurrency is None else concurrency
    if interval_days < 1:
        raise ValidationError(f"interval_days must be positive, got {interval_days}")
    if concurrency < 1:
        raise ValidationError(f"concurrency must be positive, got {concurrency}")

    assets = await read_all(
        source,
        AssetQuery(branch_id=branch_id, states=SCHEDULED_STATES, active=True),
        max_assets,
    )

    semaphore = asyncio.Semaphore(concurrency)

    async def _lookup(asset: Asset) -> date | None:
        async with semaphore:
            return await _last_closed_date(source, asset.id)

    last_closed = await asyncio.gather(*(_lookup(a) for a in assets))

    estimates = [
        estimate(asset, closed, today, interval_days)
        for asset, closed in zip(assets, last_closed)
        if closed is not None
    ]
    logger.debug(
        "Estimated %d of %d assets (branch=%s)",
        len(estimates),
        len(assets),
        branch_id,
    )
    return sort_by_urgency(estimates)
