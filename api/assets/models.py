# api/assets/models.py
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class AssetCreate(BaseModel):
    asset_code: str = Field(..., min_length=1, max_length=100, description="Barcode printed on the tool")
    branch_id: int
    asset_type_id: int


class AssetRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    asset_code: str
    branch_id: int
    asset_type_id: int
    state: str
    is_active: bool
    registered_at: datetime
    updated_at: datetime | None = None


class BulkReturn(BaseModel):
    asset_ids: list[int] = Field(..., min_length=1, max_length=500)
