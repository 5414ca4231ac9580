from datetime import date, timedelta

import pytest

from api.maintenance import db_manager as lifecycle_db
from api.schedule.db_manager import (
    Urgency,
    classify_urgency,
    get_upcoming_maintenance,
    sort_by_urgency,
    UpcomingMaintenance,
)
from core.errors import ValidationError


@pytest.mark.parametrize(
    "days, expected",
    [
        (-1, Urgency.CRITICAL),
        (-30, Urgency.CRITICAL),
        (0, Urgency.HIGH),
        (3, Urgency.HIGH),
        (4, Urgency.MEDIUM),
        (7, Urgency.MEDIUM),
        (8, Urgency.LOW),
        (90, Urgency.LOW),
    ],
)
def test_urgency_tiers(days, expected):
    assert classify_urgency(days) == expected


def test_sort_puts_most_urgent_first():
    def item(days):
        return UpcomingMaintenance(
            asset_id=days,
            asset_code=f"A{days}",
            branch_id=1,
            asset_type_id=1,
            asset_type_name=None,
            state="AVAILABLE",
            last_closed=date(2026, 1, 1),
            due_date=date(2026, 1, 1),
            days_remaining=days,
            urgency=classify_urgency(days),
        )

    ordered = sort_by_urgency([item(10), item(-2), item(5), item(-9), item(1)])
    assert [i.days_remaining for i in ordered] == [-9, -2, 1, 5, 10]


async def _maintain(store, seed, asset, opened, closed, pick_up=True):
    result = await lifecycle_db.open_maintenance(
        store, asset.id, seed.preventive_id, seed.operator.id, opened
    )
    await lifecycle_db.close_maintenance(store, result.event.id, closed)
    if pick_up:
        await lifecycle_db.return_to_service(store, asset.id)


@pytest.mark.anyio
async def test_overdue_asset_is_critical(store, seed, make_asset, today):
    asset = await make_asset()
    closed = today - timedelta(days=35)
    await _maintain(store, seed, asset, closed - timedelta(days=1), closed)

    items = await get_upcoming_maintenance(store, today=today, interval_days=30)
    assert len(items) == 1
    assert items[0].asset_id == asset.id
    assert items[0].last_closed == closed
    assert items[0].due_date == closed + timedelta(days=30)
    assert items[0].days_remaining == -5
    assert items[0].urgency == Urgency.CRITICAL


@pytest.mark.anyio
async def test_uses_latest_close_and_skips_unmaintained(store, seed, make_asset, today):
    never = await make_asset()
    twice = await make_asset()
    await _maintain(store, seed, twice, today - timedelta(days=80), today - timedelta(days=78))
    await _maintain(store, seed, twice, today - timedelta(days=20), today - timedelta(days=18))

    items = await get_upcoming_maintenance(store, today=today, interval_days=30)
    assert [i.asset_id for i in items] == [twice.id]
    assert items[0].days_remaining == 12
    assert items[0].urgency == Urgency.LOW
    assert never.id not in [i.asset_id for i in items]


@pytest.mark.anyio
async def test_excludes_ready_and_deactivated_assets(store, seed, make_asset, today):
    waiting = await make_asset()
    await _maintain(store, seed, waiting, today - timedelta(days=40), today - timedelta(days=39), pick_up=False)

    retired = await make_asset()
    result = await lifecycle_db.open_maintenance(
        store, retired.id, seed.preventive_id, seed.operator.id, today - timedelta(days=40)
    )
    await lifecycle_db.close_maintenance(store, result.event.id, today - timedelta(days=39), final=True)

    assert await get_upcoming_maintenance(store, today=today) == []


@pytest.mark.anyio
async def test_in_maintenance_asset_is_still_estimated(store, seed, make_asset, today):
    asset = await make_asset()
    await _maintain(store, seed, asset, today - timedelta(days=30), today - timedelta(days=28))
    await lifecycle_db.open_maintenance(
        store, asset.id, seed.corrective_id, seed.operator.id, today
    )

    items = await get_upcoming_maintenance(store, today=today, interval_days=30)
    assert len(items) == 1
    assert items[0].state == "IN_MAINTENANCE"
    assert items[0].days_remaining == 2
    assert items[0].urgency == Urgency.HIGH


@pytest.mark.anyio
async def test_ordering_and_branch_filter(store, seed, make_asset, today):
    soon = await make_asset()
    late = await make_asset()
    overdue = await make_asset(branch_id=seed.other_branch_id)
    await _maintain(store, seed, soon, today - timedelta(days=26), today - timedelta(days=25))
    await _maintain(store, seed, late, today - timedelta(days=11), today - timedelta(days=10))
    await _maintain(store, seed, overdue, today - timedelta(days=50), today - timedelta(days=45))

    items = await get_upcoming_maintenance(store, today=today, interval_days=30)
    assert [i.asset_id for i in items] == [overdue.id, soon.id, late.id]
    assert [i.urgency for i in items] == [Urgency.CRITICAL, Urgency.MEDIUM, Urgency.LOW]

    branch_items = await get_upcoming_maintenance(store, seed.branch_id, today=today, interval_days=30)
    assert [i.asset_id for i in branch_items] == [soon.id, late.id]


@pytest.mark.anyio
async def test_interval_must_be_positive(store, seed, today):
    with pytest.raises(ValidationError):
        await get_upcoming_maintenance(store, today=today, interval_days=0)


@pytest.mark.anyio
async def test_explicit_zero_limits_are_rejected(store, seed, today):
    with pytest.raises(ValidationError):
        await get_upcoming_maintenance(store, today=today, max_assets=0)
    with pytest.raises(ValidationError):
        await get_upcoming_maintenance(store, today=today, concurrency=0)
