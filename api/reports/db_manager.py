# api/reports/db_manager.py
"""
Maintenance export rows.

Always read straight from the ledger; dashboard caches are never consulted.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import date

from config import settings
from db_models.maintenance_event import MaintenanceEvent
from core.bulk_reader import read_all
from core.store import EventOrder, EventQuery, EventStatus, PageSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportFilters:
    branch_id: int | None = None
    asset_id: int | None = None
    maintenance_type_id: int | None = None
    performed_by_id: int | None = None
    opened_from: date | None = None
    opened_before: date | None = None
    status: EventStatus = EventStatus.ANY

    def to_query(self) -> EventQuery:
        return EventQuery(
            branch_id=self.branch_id,
            asset_id=self.asset_id,
            maintenance_type_id=self.maintenance_type_id,
            performed_by_id=self.performed_by_id,
            opened_from=self.opened_from,
            opened_before=self.opened_before,
            status=self.status,
            order=EventOrder.OPENED_DESC,
        )


@dataclass(frozen=True)
class MaintenanceReport:
    rows: list[dict]
    total_matching: int
    truncated: bool


def flatten_event(event: MaintenanceEvent) -> dict:
    asset = event.asset
    return {
        "event_id": event.id,
        "asset_id": event.asset_id,
        "asset_code": asset.asset_code,
        "branch": asset.branch.name if asset.branch is not None else None,
        "asset_type": asset.asset_type.name if asset.asset_type is not None else None,
        "maintenance_type": event.maintenance_type.name,
        "performed_by": event.performed_by.full_name,
        "date_opened": event.date_opened,
        "date_closed": event.date_closed,
        "status": "open" if event.is_open else "closed",
        "is_final": event.is_final,
        "notes": event.notes,
    }


async def build_maintenance_report(
    source: PageSource,
    filters: ReportFilters,
    max_records: int | None = None,
) -> MaintenanceReport:
    """
    Every event matching ``filters``, newest first, as flat rows.

    ``total_matching`` is an exact count; ``truncated`` is set when it
    exceeds the rows returned.
    """
    max_records = settings.REPORT_MAX_RECORDS if max_records is None else max_records
    query = filters.to_query()
    events, total = await asyncio.gather(
        read_all(source, query, max_records),
        source.count(query),
    )
    rows = [flatten_event(e) for e in events]
    truncated = total > len(rows)
    if truncated:
        logger.warning(
            "Maintenance report truncated at %d of %d rows",
            len(rows),
            total,
        )
    return MaintenanceReport(rows=rows, total_matching=total, truncated=truncated)
