# api/assets/views.py
"""
Asset registry endpoints plus the pickup (return to service) transitions.
"""
from fastapi import APIRouter, HTTPException, Query, status

from db_models.asset import AssetState
from core.deps import AdminUser, CurrentUser, Store, resolve_branch
from core.errors import ConflictError, NotFoundError, ValidationError
from api.maintenance import db_manager as lifecycle_db
from api.maintenance.models import EventRead, LifecycleRead
from .models import AssetCreate, AssetRead, BulkReturn
from . import db_manager

router = APIRouter(prefix="/assets", tags=["assets"])


@router.post(
    "",
    response_model=AssetRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register an asset",
)
async def register_asset_endpoint(
    payload: AssetCreate,
    admin: AdminUser,  # Only admins register assets
    store: Store,
) -> AssetRead:
    try:
        asset = await db_manager.register_asset(
            store,
            asset_code=payload.asset_code,
            branch_id=payload.branch_id,
            asset_type_id=payload.asset_type_id,
        )
    except ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return AssetRead.model_validate(asset)


@router.get(
    "",
    response_model=list[AssetRead],
    summary="List assets",
)
async def list_assets_endpoint(
    current_user: CurrentUser,
    store: Store,
    branch_id: int | None = None,
    asset_type_id: int | None = None,
    state: AssetState | None = None,
    active: bool | None = None,
    limit: int = Query(1000, ge=1, le=10000),
) -> list[AssetRead]:
    branch_id = resolve_branch(current_user, branch_id)
    assets = await db_manager.list_assets(
        store,
        branch_id=branch_id,
        asset_type_id=asset_type_id,
        state=state,
        active=active,
        max_records=limit,
    )
    return [AssetRead.model_validate(a) for a in assets]


@router.post(
    "/return",
    response_model=list[LifecycleRead],
    summary="Bulk pickup: return several assets to service",
)
async def bulk_return_endpoint(
    payload: BulkReturn,
    current_user: CurrentUser,
    store: Store,
) -> list[LifecycleRead]:
    """
    Return every listed READY_FOR_PICKUP asset to AVAILABLE in one transaction.
    If any asset can't be returned, none are.
    """
    try:
        if not current_user.sees_all_branches():
            for asset_id in payload.asset_ids:
                asset = await db_manager.get_asset(store, asset_id)
                resolve_branch(current_user, asset.branch_id)
        results = await lifecycle_db.return_many_to_service(store, payload.asset_ids)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return [LifecycleRead.model_validate({"asset": r.asset}, from_attributes=True) for r in results]


@router.get(
    "/by-code/{asset_code}",
    response_model=AssetRead,
    summary="Look up an asset by its code",
)
async def get_asset_by_code_endpoint(
    asset_code: str,
    current_user: CurrentUser,
    store: Store,
) -> AssetRead:
    try:
        asset = await db_manager.get_asset_by_code(store, asset_code)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    resolve_branch(current_user, asset.branch_id)
    return AssetRead.model_validate(asset)


@router.get(
    "/{asset_id}",
    response_model=AssetRead,
    summary="Get asset by ID",
)
async def get_asset_endpoint(
    asset_id: int,
    current_user: CurrentUser,
    store: Store,
) -> AssetRead:
    try:
        asset = await db_manager.get_asset(store, asset_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    resolve_branch(current_user, asset.branch_id)
    return AssetRead.model_validate(asset)


@router.get(
    "/{asset_id}/history",
    response_model=list[EventRead],
    summary="Maintenance history of an asset",
)
async def asset_history_endpoint(
    asset_id: int,
    current_user: CurrentUser,
    store: Store,
    limit: int = Query(1000, ge=1, le=10000),
) -> list[EventRead]:
    try:
        asset = await db_manager.get_asset(store, asset_id)
        resolve_branch(current_user, asset.branch_id)
        events = await db_manager.get_asset_history(store, asset_id, max_records=limit)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return [EventRead.model_validate(e) for e in events]


@router.post(
    "/{asset_id}/return",
    response_model=LifecycleRead,
    summary="Return a ready asset to service",
)
async def return_to_service_endpoint(
    asset_id: int,
    current_user: CurrentUser,
    store: Store,
) -> LifecycleRead:
    """
    Confirm pickup of a READY_FOR_PICKUP asset; it becomes AVAILABLE.
    """
    try:
        asset = await db_manager.get_asset(store, asset_id)
        resolve_branch(current_user, asset.branch_id)
        result = await lifecycle_db.return_to_service(store, asset_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    return LifecycleRead.model_validate({"asset": result.asset}, from_attributes=True)
