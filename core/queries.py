# core/queries.py
"""
SQLAlchemy query builders for ledger descriptors.
"""
from sqlalchemy import select, func
from sqlalchemy.orm import joinedload

from db_models.asset import Asset
from db_models.maintenance_event import MaintenanceEvent
from db_models.maintenance_type import MaintenanceType
from db_models.user import User
from core.store import (
    AssetOrder,
    AssetQuery,
    EventOrder,
    EventQuery,
    EventStatus,
)


def _event_conditions(q: EventQuery) -> list:
    conditions = []
    if q.event_id is not None:
        conditions.append(MaintenanceEvent.id == q.event_id)
    if q.asset_id is not None:
        conditions.append(MaintenanceEvent.asset_id == q.asset_id)
    if q.maintenance_type_id is not None:
        conditions.append(MaintenanceEvent.maintenance_type_id == q.maintenance_type_id)
    if q.performed_by_id is not None:
        conditions.append(MaintenanceEvent.performed_by_id == q.performed_by_id)
    if q.opened_from is not None:
        conditions.append(MaintenanceEvent.date_opened >= q.opened_from)
    if q.opened_before is not None:
        conditions.append(MaintenanceEvent.date_opened < q.opened_before)
    if q.status == EventStatus.OPEN:
        conditions.append(MaintenanceEvent.date_closed.is_(None))
    elif q.status == EventStatus.CLOSED:
        conditions.append(MaintenanceEvent.date_closed.is_not(None))
    if q.branch_id is not None:
        # Correlated subquery keeps the count query join-free
        conditions.append(
            MaintenanceEvent.asset_id.in_(
                select(Asset.id).where(Asset.branch_id == q.branch_id)
            )
        )
    return conditions


def _event_ordering(order: EventOrder) -> list:
    # id is always the last key so offset paging never repeats or skips rows
    if order == EventOrder.OPENED_ASC:
        return [MaintenanceEvent.date_opened.asc(), MaintenanceEvent.id.asc()]
    if order == EventOrder.CLOSED_DESC:
        return [
            MaintenanceEvent.date_closed.desc().nulls_last(),
            MaintenanceEvent.id.desc(),
        ]
    return [MaintenanceEvent.date_opened.desc(), MaintenanceEvent.id.desc()]


def _asset_conditions(q: AssetQuery) -> list:
    conditions = []
    if q.asset_id is not None:
        conditions.append(Asset.id == q.asset_id)
    if q.asset_code is not None:
        conditions.append(Asset.asset_code == q.asset_code)
    if q.branch_id is not None:
        conditions.append(Asset.branch_id == q.branch_id)
    if q.asset_type_id is not None:
        conditions.append(Asset.asset_type_id == q.asset_type_id)
    if q.states is not None:
        conditions.append(Asset.state.in_([s.value for s in q.states]))
    if q.active is not None:
        conditions.append(Asset.is_active == q.active)
    return conditions


def _asset_ordering(order: AssetOrder) -> list:
    if order == AssetOrder.REGISTERED_DESC:
        return [Asset.registered_at.desc(), Asset.id.desc()]
    return [Asset.asset_code.asc(), Asset.id.asc()]


def select_page(descriptor, limit: int, offset: int):
    """Select one page of rows for a descriptor, with relations eager-loaded."""
    if isinstance(descriptor, EventQuery):
        return (
            select(MaintenanceEvent)
            .options(
                joinedload(MaintenanceEvent.asset).joinedload(Asset.branch),
                joinedload(MaintenanceEvent.asset).joinedload(Asset.asset_type),
                joinedload(MaintenanceEvent.maintenance_type),
                joinedload(MaintenanceEvent.performed_by),
            )
            .where(*_event_conditions(descriptor))
            .order_by(*_event_ordering(descriptor.order))
            .limit(limit)
            .offset(offset)
        )
    if isinstance(descriptor, AssetQuery):
        return (
            select(Asset)
            .options(joinedload(Asset.branch), joinedload(Asset.asset_type))
            .where(*_asset_conditions(descriptor))
            .order_by(*_asset_ordering(descriptor.order))
            .limit(limit)
            .offset(offset)
        )
    raise TypeError(f"Unsupported descriptor: {type(descriptor).__name__}")


def count_matching(descriptor):
    """Count-only query for a descriptor."""
    if isinstance(descriptor, EventQuery):
        return (
            select(func.count(MaintenanceEvent.id))
            .where(*_event_conditions(descriptor))
        )
    if isinstance(descriptor, AssetQuery):
        return select(func.count(Asset.id)).where(*_asset_conditions(descriptor))
    raise TypeError(f"Unsupported descriptor: {type(descriptor).__name__}")


# --- Write-side lookups ---

def select_asset_for_update(asset_id: int):
    """Select an asset and lock its row for the rest of the transaction."""
    return select(Asset).where(Asset.id == asset_id).with_for_update()


def select_event_for_update(event_id: int):
    return (
        select(MaintenanceEvent)
        .where(MaintenanceEvent.id == event_id)
        .with_for_update()
    )


def select_open_event_for_asset(asset_id: int):
    return select(MaintenanceEvent).where(
        MaintenanceEvent.asset_id == asset_id,
        MaintenanceEvent.date_closed.is_(None),
    )


def select_asset_by_code(asset_code: str):
    return select(Asset.id).where(Asset.asset_code == asset_code)


def select_maintenance_type_id(maintenance_type_id: int):
    return select(MaintenanceType.id).where(MaintenanceType.id == maintenance_type_id)


def select_user_id(user_id: int):
    return select(User.id).where(User.id == user_id)
