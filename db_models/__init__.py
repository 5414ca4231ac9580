# db_models/__init__.py
# Importing the package registers every table on Base.metadata.
from db_models.branch import Branch
from db_models.asset_type import AssetType
from db_models.maintenance_type import MaintenanceType
from db_models.user import User, UserRole
from db_models.asset import Asset, AssetState
from db_models.maintenance_event import MaintenanceEvent

__all__ = [
    "Asset",
    "AssetState",
    "AssetType",
    "Branch",
    "MaintenanceEvent",
    "MaintenanceType",
    "User",
    "UserRole",
]
