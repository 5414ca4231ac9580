# db_models/asset.py
from datetime import datetime
from enum import Enum

from sqlalchemy import String, Boolean, DateTime, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db_base import Base


class AssetState(str, Enum):
    """Lifecycle state of an asset. Only the state machine changes it."""
    AVAILABLE = "AVAILABLE"
    IN_MAINTENANCE = "IN_MAINTENANCE"
    READY_FOR_PICKUP = "READY_FOR_PICKUP"
    DEACTIVATED = "DEACTIVATED"


class Asset(Base):
    __tablename__ = "assets"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    # Barcode printed on the tool; never reassigned
    asset_code: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        nullable=False,
    )

    asset_type_id: Mapped[int] = mapped_column(
        ForeignKey("asset_types.id"),
        nullable=False,
        index=True,
    )

    branch_id: Mapped[int] = mapped_column(
        ForeignKey("branches.id"),
        nullable=False,
        index=True,
    )

    # One-way: flips to false together with state DEACTIVATED
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default="true",
    )

    state: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=AssetState.AVAILABLE.value,
        server_default=AssetState.AVAILABLE.value,
        index=True,
    )

    registered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        onupdate=func.now(),
    )

    branch: Mapped["Branch"] = relationship("Branch", back_populates="assets")
    asset_type: Mapped["AssetType"] = relationship("AssetType")

    # Events look assets up; assets do not own them (no cascade)
    events: Mapped[list["MaintenanceEvent"]] = relationship(
        "MaintenanceEvent",
        back_populates="asset",
        viewonly=True,
    )

    @property
    def lifecycle_state(self) -> AssetState:
        return AssetState(self.state)
