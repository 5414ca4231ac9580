# core/sql_store.py
"""
SQLAlchemy implementation of the ledger store.

Every read opens its own short-lived session, so independent reads (month
buckets, per-asset histories) can run concurrently. Writes run in
``run_atomic``: one session, one transaction, committed only if the callback
returns normally.
"""
import logging
from typing import Any, Awaitable, Callable, TypeVar

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from db_models.asset import Asset, AssetState
from db_models.asset_type import AssetType
from db_models.branch import Branch
from db_models.maintenance_event import MaintenanceEvent
from core.errors import ConflictError, DataAccessError
from core.store import Descriptor, LedgerUnit, describe
from core import queries

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SqlLedgerUnit:
    """Write-side operations bound to the session of one transaction."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_asset(self, asset_id: int) -> Asset | None:
        result = await self.session.execute(queries.select_asset_for_update(asset_id))
        return result.scalar_one_or_none()

    async def get_event(self, event_id: int) -> MaintenanceEvent | None:
        result = await self.session.execute(queries.select_event_for_update(event_id))
        return result.scalar_one_or_none()

    async def find_open_event(self, asset_id: int) -> MaintenanceEvent | None:
        result = await self.session.execute(queries.select_open_event_for_asset(asset_id))
        return result.scalars().first()

    async def maintenance_type_exists(self, maintenance_type_id: int) -> bool:
        result = await self.session.execute(
            queries.select_maintenance_type_id(maintenance_type_id)
        )
        return result.scalar_one_or_none() is not None

    async def user_exists(self, user_id: int) -> bool:
        result = await self.session.execute(queries.select_user_id(user_id))
        return result.scalar_one_or_none() is not None

    async def reference_exists(self, branch_id: int, asset_type_id: int) -> tuple[bool, bool]:
        branch = await self.session.get(Branch, branch_id)
        asset_type = await self.session.get(AssetType, asset_type_id)
        return branch is not None, asset_type is not None

    async def asset_code_taken(self, asset_code: str) -> bool:
        result = await self.session.execute(queries.select_asset_by_code(asset_code))
        return result.scalar_one_or_none() is not None

    async def add_asset(self, asset: Asset) -> Asset:
        self.session.add(asset)
        await self.session.flush()
        await self.session.refresh(asset)
        return asset

    async def add_event(self, event: MaintenanceEvent) -> MaintenanceEvent:
        self.session.add(event)
        await self.session.flush()  # unique open-event index fires here
        await self.session.refresh(event)
        return event

    async def save_event(self, event: MaintenanceEvent) -> MaintenanceEvent:
        await self.session.flush()
        await self.session.refresh(event)
        return event

    async def transition_asset(
        self,
        asset: Asset,
        expected: AssetState,
        target: AssetState,
    ) -> Asset:
        """
        Compare-and-swap the asset state.

        The UPDATE only matches while the row still holds ``expected``; a
        concurrent writer that got there first leaves zero matched rows.
        """
        values: dict[str, Any] = {"state": target.value}
        if target == AssetState.DEACTIVATED:
            values["is_active"] = False

        stmt = (
            update(Asset)
            .where(Asset.id == asset.id, Asset.state == expected.value)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            raise ConflictError(
                f"Asset {asset.id} is no longer {expected.value}; "
                f"cannot move it to {target.value}"
            )

        await self.session.refresh(asset)
        return asset


class SqlStore:
    """
    Ledger store over an ``async_sessionmaker``.

    ``page_size`` mimics the row cap of a hosted backend: ``query`` never
    returns more than that many rows, whatever ``limit`` asks for.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], page_size: int = 1000):
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self._session_factory = session_factory
        self._page_size = page_size

    @property
    def page_size(self) -> int:
        return self._page_size

    async def query(self, descriptor: Descriptor, limit: int, offset: int) -> list[Any]:
        limit = min(limit, self._page_size)
        stmt = queries.select_page(descriptor, limit=limit, offset=offset)
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return list(result.scalars().unique().all())
        except SQLAlchemyError as exc:
            logger.error("Query failed for %s at offset %d: %s", describe(descriptor), offset, exc)
            raise DataAccessError(f"Query failed for {describe(descriptor)}") from exc

    async def count(self, descriptor: Descriptor) -> int:
        stmt = queries.count_matching(descriptor)
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return result.scalar() or 0
        except SQLAlchemyError as exc:
            logger.error("Count failed for %s: %s", describe(descriptor), exc)
            raise DataAccessError(f"Count failed for {describe(descriptor)}") from exc

    async def run_atomic(self, fn: Callable[[LedgerUnit], Awaitable[T]]) -> T:
        """
        Run ``fn`` in a single transaction.

        Domain errors raised by ``fn`` roll back and propagate unchanged.
        Integrity violations (duplicate code, second open event) surface as
        ConflictError; any other database failure as DataAccessError.
        """
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    return await fn(SqlLedgerUnit(session))
        except IntegrityError as exc:
            logger.warning("Atomic unit rejected by constraint: %s", exc.orig)
            raise ConflictError("Write conflicts with existing data") from exc
        except SQLAlchemyError as exc:
            logger.error("Atomic unit failed: %s", exc)
            raise DataAccessError("Write failed; nothing was applied") from exc
