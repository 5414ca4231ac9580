# api/maintenance/models.py
from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field


class MaintenanceOpen(BaseModel):
    asset_id: int
    maintenance_type_id: int
    date_opened: date
    notes: str | None = Field(None, max_length=2000)


class MaintenanceClose(BaseModel):
    date_closed: date
    notes: str | None = Field(None, max_length=2000)
    final: bool = Field(False, description="Retire the asset permanently after this maintenance")


class NoteAppend(BaseModel):
    text: str = Field(..., min_length=1, max_length=2000)


class AssetStateRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    asset_code: str
    branch_id: int
    asset_type_id: int
    state: str
    is_active: bool


class EventRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    asset_id: int
    maintenance_type_id: int
    performed_by_id: int
    date_opened: date
    date_closed: date | None = None
    notes: str | None = None
    is_final: bool
    created_at: datetime


class LifecycleRead(BaseModel):
    """Result of a lifecycle operation: the asset after the move, and the event touched."""
    asset: AssetStateRead
    event: EventRead | None = None
