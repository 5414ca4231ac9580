# core/store.py
"""
Storage-agnostic contracts for the maintenance ledger.

Reads are described by frozen query descriptors and executed by a
``PageSource`` (``query``/``count``). Writes only happen inside
``LedgerStore.run_atomic(fn)``, which hands ``fn`` a ``LedgerUnit`` whose
operations commit or roll back together.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Awaitable, Callable, Protocol, Sequence, TypeVar

from db_models.asset import Asset, AssetState
from db_models.maintenance_event import MaintenanceEvent

T = TypeVar("T")


class EventStatus(str, Enum):
    ANY = "any"
    OPEN = "open"
    CLOSED = "closed"


class EventOrder(str, Enum):
    OPENED_DESC = "opened_desc"
    OPENED_ASC = "opened_asc"
    CLOSED_DESC = "closed_desc"


class AssetOrder(str, Enum):
    CODE_ASC = "code_asc"
    REGISTERED_DESC = "registered_desc"


@dataclass(frozen=True)
class EventQuery:
    """Maintenance events matching every non-None predicate.

    ``opened_from`` is inclusive, ``opened_before`` exclusive. ``branch_id``
    filters through the event's asset.
    """
    event_id: int | None = None
    asset_id: int | None = None
    branch_id: int | None = None
    maintenance_type_id: int | None = None
    performed_by_id: int | None = None
    opened_from: date | None = None
    opened_before: date | None = None
    status: EventStatus = EventStatus.ANY
    order: EventOrder = EventOrder.OPENED_DESC


@dataclass(frozen=True)
class AssetQuery:
    asset_id: int | None = None
    asset_code: str | None = None
    branch_id: int | None = None
    asset_type_id: int | None = None
    states: tuple[AssetState, ...] | None = None
    active: bool | None = None
    order: AssetOrder = AssetOrder.CODE_ASC


Descriptor = EventQuery | AssetQuery


class PageSource(Protocol):
    """Backing query interface. ``query`` silently truncates to ``page_size``."""

    @property
    def page_size(self) -> int: ...

    async def query(self, descriptor: Descriptor, limit: int, offset: int) -> list[Any]: ...

    async def count(self, descriptor: Descriptor) -> int: ...


class LedgerUnit(Protocol):
    """Write-side operations available inside one atomic unit."""

    async def get_asset(self, asset_id: int) -> Asset | None: ...

    async def get_event(self, event_id: int) -> MaintenanceEvent | None: ...

    async def find_open_event(self, asset_id: int) -> MaintenanceEvent | None: ...

    async def maintenance_type_exists(self, maintenance_type_id: int) -> bool: ...

    async def user_exists(self, user_id: int) -> bool: ...

    async def reference_exists(self, branch_id: int, asset_type_id: int) -> tuple[bool, bool]: ...

    async def asset_code_taken(self, asset_code: str) -> bool: ...

    async def add_asset(self, asset: Asset) -> Asset: ...

    async def add_event(self, event: MaintenanceEvent) -> MaintenanceEvent: ...

    async def save_event(self, event: MaintenanceEvent) -> MaintenanceEvent: ...

    async def transition_asset(
        self,
        asset: Asset,
        expected: AssetState,
        target: AssetState,
    ) -> Asset: ...


class LedgerStore(PageSource, Protocol):
    async def run_atomic(self, fn: Callable[[LedgerUnit], Awaitable[T]]) -> T: ...


def describe(descriptor: Descriptor) -> str:
    """Short log-friendly rendering of the non-default predicates."""
    fields: Sequence[str] = [
        f"{name}={value!r}"
        for name, value in vars(descriptor).items()
        if value is not None and name != "order"
    ]
    return f"{type(descriptor).__name__}({', '.join(fields)})"
