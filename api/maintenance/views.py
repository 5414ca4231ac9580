# api/maintenance/views.py
"""
Maintenance event endpoints: check-in, completion, notes.
"""
from fastapi import APIRouter, HTTPException, Query, status

from api.assets import db_manager as assets_db
from core.deps import CurrentUser, Store, resolve_branch
from core.errors import ConflictError, NotFoundError, ValidationError
from core.store import EventStatus
from .models import (
    EventRead,
    LifecycleRead,
    MaintenanceClose,
    MaintenanceOpen,
    NoteAppend,
)
from . import db_manager

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


def _to_read(result: db_manager.LifecycleResult) -> LifecycleRead:
    return LifecycleRead.model_validate(
        {"asset": result.asset, "event": result.event},
        from_attributes=True,
    )


async def _check_event_branch(store, user, event_id: int) -> None:
    """Operators may only touch events of assets in their branch."""
    if user.sees_all_branches():
        return
    event = await db_manager.get_event(store, event_id)
    if event.asset.branch_id != user.branch_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Event {event_id} belongs to another branch",
        )


@router.post(
    "",
    response_model=LifecycleRead,
    status_code=status.HTTP_201_CREATED,
    summary="Check an asset in for maintenance",
)
async def open_maintenance_endpoint(
    payload: MaintenanceOpen,
    current_user: CurrentUser,
    store: Store,
) -> LifecycleRead:
    """
    Open a maintenance event for an AVAILABLE asset. The caller is recorded
    as the performer.
    """
    try:
        if not current_user.sees_all_branches():
            asset = await assets_db.get_asset(store, payload.asset_id)
            resolve_branch(current_user, asset.branch_id)
        result = await db_manager.open_maintenance(
            store,
            asset_id=payload.asset_id,
            maintenance_type_id=payload.maintenance_type_id,
            performed_by_id=current_user.id,
            date_opened=payload.date_opened,
            notes=payload.notes,
        )
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return _to_read(result)


@router.post(
    "/{event_id}/close",
    response_model=LifecycleRead,
    summary="Complete a maintenance event",
)
async def close_maintenance_endpoint(
    event_id: int,
    payload: MaintenanceClose,
    current_user: CurrentUser,
    store: Store,
) -> LifecycleRead:
    """
    Close an open event. The asset becomes READY_FOR_PICKUP, or DEACTIVATED
    when ``final`` is true.
    """
    try:
        await _check_event_branch(store, current_user, event_id)
        result = await db_manager.close_maintenance(
            store,
            event_id=event_id,
            date_closed=payload.date_closed,
            notes=payload.notes,
            final=payload.final,
        )
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return _to_read(result)


@router.post(
    "/{event_id}/notes",
    response_model=EventRead,
    summary="Append a note to an event",
)
async def append_notes_endpoint(
    event_id: int,
    payload: NoteAppend,
    current_user: CurrentUser,
    store: Store,
) -> EventRead:
    try:
        await _check_event_branch(store, current_user, event_id)
        event = await db_manager.append_event_notes(store, event_id, payload.text)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return EventRead.model_validate(event)


@router.get(
    "/{event_id}",
    response_model=EventRead,
    summary="Get a maintenance event",
)
async def get_event_endpoint(
    event_id: int,
    current_user: CurrentUser,
    store: Store,
) -> EventRead:
    try:
        await _check_event_branch(store, current_user, event_id)
        event = await db_manager.get_event(store, event_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return EventRead.model_validate(event)


@router.get(
    "",
    response_model=list[EventRead],
    summary="List maintenance events",
)
async def list_events_endpoint(
    current_user: CurrentUser,
    store: Store,
    branch_id: int | None = None,
    event_status: EventStatus = Query(EventStatus.ANY, alias="status"),
    limit: int = Query(100, ge=1, le=1000),
) -> list[EventRead]:
    """
    Most recent events first. ``status=open`` lists assets currently in the shop.
    """
    branch_id = resolve_branch(current_user, branch_id)
    events = await db_manager.list_events(
        store,
        branch_id=branch_id,
        status=event_status,
        max_records=limit,
    )
    return [EventRead.model_validate(e) for e in events]
