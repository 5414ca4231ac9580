# api/schedule/models.py
from datetime import date
from pydantic import BaseModel, ConfigDict

from .db_manager import Urgency


class UpcomingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    asset_id: int
    asset_code: str
    branch_id: int
    asset_type_id: int
    asset_type_name: str | None = None
    state: str
    last_closed: date
    due_date: date
    days_remaining: int
    urgency: Urgency


class UpcomingResponse(BaseModel):
    interval_days: int
    total: int
    by_urgency: dict[str, int]
    items: list[UpcomingRead]
