# api/reports/models.py
from datetime import date
from pydantic import BaseModel


class MaintenanceReportRow(BaseModel):
    event_id: int
    asset_id: int
    asset_code: str
    branch: str | None = None
    asset_type: str | None = None
    maintenance_type: str
    performed_by: str
    date_opened: date
    date_closed: date | None = None
    status: str
    is_final: bool
    notes: str | None = None


class MaintenanceReportRead(BaseModel):
    total_matching: int
    returned: int
    truncated: bool
    rows: list[MaintenanceReportRow]
