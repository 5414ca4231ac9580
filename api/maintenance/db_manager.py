# api/maintenance/db_manager.py
"""
Lifecycle operations: open and close maintenance events, return assets to service.

Each operation runs as one atomic unit through ``store.run_atomic``. Event
creation and the asset state change commit together or not at all. The
asset row is locked and its state is changed with a compare-and-swap, so two
concurrent opens for the same asset cannot both succeed.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime

from db_models.asset import Asset, AssetState
from db_models.maintenance_event import MaintenanceEvent
from core.bulk_reader import read_all
from core.errors import ConflictError, NotFoundError, ValidationError
from core.store import EventQuery, EventStatus, LedgerStore, LedgerUnit
from . import lifecycle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LifecycleResult:
    """Asset and event as they stand after a committed transition."""
    asset: Asset
    event: MaintenanceEvent | None = None


def _require_date(value, field: str) -> date:
    if value is None:
        raise ValidationError(f"{field} is required")
    # datetime is a date subclass but cannot be compared with stored dates
    if not isinstance(value, date) or isinstance(value, datetime):
        raise ValidationError(f"{field} must be a date, got {type(value).__name__}")
    return value


def _append(existing: str | None, text: str | None) -> str | None:
    if not text or not text.strip():
        return existing
    if not existing:
        return text.strip()
    return f"{existing}\n{text.strip()}"


async def _get_asset_or_raise(unit: LedgerUnit, asset_id: int) -> Asset:
    asset = await unit.get_asset(asset_id)
    if asset is None:
        raise NotFoundError(f"Asset {asset_id} not found")
    return asset


async def open_maintenance(
    store: LedgerStore,
    asset_id: int,
    maintenance_type_id: int,
    performed_by_id: int,
    date_opened: date,
    notes: str | None = None,
) -> LifecycleResult:
    """
    Check an AVAILABLE asset in for maintenance.

    Raises:
        NotFoundError: If the asset doesn't exist
        ValidationError: If the type or performer is unknown, or the date is missing
        ConflictError: If the asset is not AVAILABLE or already has an open event
    """
    _require_date(date_opened, "date_opened")
    if maintenance_type_id is None:
        raise ValidationError("maintenance_type_id is required")

    async def _open(unit: LedgerUnit) -> LifecycleResult:
        asset = await _get_asset_or_raise(unit, asset_id)
        current = asset.lifecycle_state

        if not asset.is_active or current != AssetState.AVAILABLE:
            raise ConflictError(
                f"Asset {asset_id} is {current.value}; only AVAILABLE assets can enter maintenance"
            )
        if not await unit.maintenance_type_exists(maintenance_type_id):
            raise ValidationError(f"Maintenance type {maintenance_type_id} does not exist")
        if not await unit.user_exists(performed_by_id):
            raise ValidationError(f"Performer {performed_by_id} does not exist")

        # The state check should already rule this out; the ledger is the authority
        existing = await unit.find_open_event(asset_id)
        if existing is not None:
            raise ConflictError(
                f"Asset {asset_id} already has open maintenance event {existing.id}"
            )

        lifecycle.validate_transition(asset_id, current, AssetState.IN_MAINTENANCE)
        asset = await unit.transition_asset(asset, AssetState.AVAILABLE, AssetState.IN_MAINTENANCE)

        event = MaintenanceEvent(
            asset_id=asset_id,
            maintenance_type_id=maintenance_type_id,
            performed_by_id=performed_by_id,
            date_opened=date_opened,
            date_closed=None,
            notes=_append(None, notes),
            is_final=False,
        )
        event = await unit.add_event(event)
        return LifecycleResult(asset=asset, event=event)

    try:
        result = await store.run_atomic(_open)
    except ConflictError as exc:
        logger.warning("Open maintenance rejected for asset %s: %s", asset_id, exc)
        raise
    logger.info("Asset %s entered maintenance (event %s)", asset_id, result.event.id)
    return result


async def close_maintenance(
    store: LedgerStore,
    event_id: int,
    date_closed: date,
    notes: str | None = None,
    final: bool = False,
) -> LifecycleResult:
    """
    Close an open event and move its asset on.

    The asset goes to READY_FOR_PICKUP, or straight to DEACTIVATED when
    ``final`` is set.

    Raises:
        NotFoundError: If the event doesn't exist
        ConflictError: If the event is already closed or the asset can't make the move
        ValidationError: If ``date_closed`` is missing or before ``date_opened``
    """
    _require_date(date_closed, "date_closed")

    async def _close(unit: LedgerUnit) -> LifecycleResult:
        event = await unit.get_event(event_id)
        if event is None:
            raise NotFoundError(f"Maintenance event {event_id} not found")
        if not event.is_open:
            raise ConflictError(
                f"Maintenance event {event_id} was already closed on {event.date_closed.isoformat()}"
            )
        if date_closed < event.date_opened:
            raise ValidationError(
                f"date_closed {date_closed.isoformat()} is before date_opened "
                f"{event.date_opened.isoformat()}"
            )

        asset = await _get_asset_or_raise(unit, event.asset_id)
        current = asset.lifecycle_state
        target = lifecycle.close_target(final)
        lifecycle.validate_transition(asset.id, current, target)

        event.date_closed = date_closed
        event.is_final = bool(final)
        event.notes = _append(event.notes, notes)
        event = await unit.save_event(event)

        asset = await unit.transition_asset(asset, current, target)
        return LifecycleResult(asset=asset, event=event)

    try:
        result = await store.run_atomic(_close)
    except ConflictError as exc:
        logger.warning("Close rejected for event %s: %s", event_id, exc)
        raise
    logger.info(
        "Event %s closed; asset %s is now %s",
        event_id,
        result.asset.id,
        result.asset.state,
    )
    return result


async def return_to_service(store: LedgerStore, asset_id: int) -> LifecycleResult:
    """
    Hand a READY_FOR_PICKUP asset back, making it AVAILABLE again.

    Raises:
        NotFoundError: If the asset doesn't exist
        ConflictError: If the asset is not READY_FOR_PICKUP
    """
    async def _return(unit: LedgerUnit) -> LifecycleResult:
        asset = await _get_asset_or_raise(unit, asset_id)
        current = asset.lifecycle_state
        if current != AssetState.READY_FOR_PICKUP:
            raise ConflictError(
                f"Asset {asset_id} is {current.value}; only READY_FOR_PICKUP assets can return to service"
            )
        lifecycle.validate_transition(asset_id, current, AssetState.AVAILABLE)
        asset = await unit.transition_asset(asset, current, AssetState.AVAILABLE)
        return LifecycleResult(asset=asset)

    result = await store.run_atomic(_return)
    logger.info("Asset %s returned to service", asset_id)
    return result


async def return_many_to_service(store: LedgerStore, asset_ids: list[int]) -> list[LifecycleResult]:
    """
    Bulk pickup: return several assets in one atomic unit.

    If any asset is missing or not READY_FOR_PICKUP nothing is applied.
    """
    if not asset_ids:
        raise ValidationError("asset_ids cannot be empty")
    if len(set(asset_ids)) != len(asset_ids):
        raise ValidationError("asset_ids contains duplicates")

    async def _return_all(unit: LedgerUnit) -> list[LifecycleResult]:
        results = []
        for asset_id in asset_ids:
            asset = await _get_asset_or_raise(unit, asset_id)
            current = asset.lifecycle_state
            if current != AssetState.READY_FOR_PICKUP:
                raise ConflictError(
                    f"Asset {asset_id} is {current.value}; bulk pickup needs every asset READY_FOR_PICKUP"
                )
            asset = await unit.transition_asset(asset, current, AssetState.AVAILABLE)
            results.append(LifecycleResult(asset=asset))
        return results

    results = await store.run_atomic(_return_all)
    logger.info("Bulk pickup returned %d assets to service", len(results))
    return results


async def append_event_notes(store: LedgerStore, event_id: int, text: str) -> MaintenanceEvent:
    """Append a line to an event's notes. Allowed on open and closed events."""
    if not text or not text.strip():
        raise ValidationError("Note text cannot be empty")

    async def _append_notes(unit: LedgerUnit) -> MaintenanceEvent:
        event = await unit.get_event(event_id)
        if event is None:
            raise NotFoundError(f"Maintenance event {event_id} not found")
        event.notes = _append(event.notes, text)
        return await unit.save_event(event)

    return await store.run_atomic(_append_notes)


async def get_event(store: LedgerStore, event_id: int) -> MaintenanceEvent:
    rows = await store.query(EventQuery(event_id=event_id), limit=1, offset=0)
    if not rows:
        raise NotFoundError(f"Maintenance event {event_id} not found")
    return rows[0]


async def list_events(
    store: LedgerStore,
    *,
    branch_id: int | None = None,
    asset_id: int | None = None,
    status: EventStatus = EventStatus.ANY,
    max_records: int = 1000,
) -> list[MaintenanceEvent]:
    """Most recent events first, bounded by ``max_records``."""
    descriptor = EventQuery(asset_id=asset_id, branch_id=branch_id, status=status)
    return await read_all(store, descriptor, max_records)
