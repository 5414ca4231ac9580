# api/assets/db_manager.py
"""
Asset registry: registration and lookups.

State changes are not made here; they go through api.maintenance.db_manager.
"""
import logging

from db_models.asset import Asset, AssetState
from db_models.maintenance_event import MaintenanceEvent
from core.bulk_reader import read_all
from core.errors import ConflictError, NotFoundError, ValidationError
from core.store import AssetQuery, EventOrder, EventQuery, LedgerStore, LedgerUnit

logger = logging.getLogger(__name__)


async def register_asset(
    store: LedgerStore,
    asset_code: str,
    branch_id: int,
    asset_type_id: int,
) -> Asset:
    """
    Register a new asset in state AVAILABLE.

    Raises:
        ValidationError: If the code is blank or the branch/type doesn't exist
        ConflictError: If the code is already registered
    """
    asset_code = (asset_code or "").strip()
    if not asset_code:
        raise ValidationError("asset_code is required")

    async def _register(unit: LedgerUnit) -> Asset:
        branch_ok, type_ok = await unit.reference_exists(branch_id, asset_type_id)
        if not branch_ok:
            raise ValidationError(f"Branch {branch_id} does not exist")
        if not type_ok:
            raise ValidationError(f"Asset type {asset_type_id} does not exist")

        # Best-effort check; the unique index is the final authority
        if await unit.asset_code_taken(asset_code):
            raise ConflictError(f"Asset with code '{asset_code}' already exists")

        asset = Asset(
            asset_code=asset_code,
            branch_id=branch_id,
            asset_type_id=asset_type_id,
            is_active=True,
            state=AssetState.AVAILABLE.value,
        )
        return await unit.add_asset(asset)

    asset = await store.run_atomic(_register)
    logger.info("Registered asset %s (id=%s) in branch %s", asset.asset_code, asset.id, branch_id)
    return asset


async def get_asset(store: LedgerStore, asset_id: int) -> Asset:
    rows = await store.query(AssetQuery(asset_id=asset_id), limit=1, offset=0)
    if not rows:
        raise NotFoundError(f"Asset {asset_id} not found")
    return rows[0]


async def get_asset_by_code(store: LedgerStore, asset_code: str) -> Asset:
    rows = await store.query(AssetQuery(asset_code=asset_code), limit=1, offset=0)
    if not rows:
        raise NotFoundError(f"Asset with code '{asset_code}' not found")
    return rows[0]


async def list_assets(
    store: LedgerStore,
    *,
    branch_id: int | None = None,
    asset_type_id: int | None = None,
    state: AssetState | None = None,
    active: bool | None = None,
    max_records: int = 1000,
) -> list[Asset]:
    descriptor = AssetQuery(
        branch_id=branch_id,
        asset_type_id=asset_type_id,
        states=(state,) if state is not None else None,
        active=active,
    )
    return await read_all(store, descriptor, max_records)


async def get_asset_history(
    store: LedgerStore,
    asset_id: int,
    max_records: int = 1000,
) -> list[MaintenanceEvent]:
    """Every event of an asset, newest first. Raises NotFoundError for unknown assets."""
    await get_asset(store, asset_id)
    return await read_all(
        store,
        EventQuery(asset_id=asset_id, order=EventOrder.OPENED_DESC),
        max_records,
    )
