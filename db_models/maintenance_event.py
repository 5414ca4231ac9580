# db_models/maintenance_event.py
from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Text,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db_base import Base
from db_models.asset import Asset


class MaintenanceEvent(Base):
    __tablename__ = "maintenance_events"
    __table_args__ = (
        # At most one open event per asset
        Index(
            "uq_maintenance_events_open_asset",
            "asset_id",
            unique=True,
            postgresql_where=text("date_closed IS NULL"),
            sqlite_where=text("date_closed IS NULL"),
        ),
        Index("ix_maintenance_events_asset_closed", "asset_id", "date_closed"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    asset_id: Mapped[int] = mapped_column(
        ForeignKey("assets.id"),
        nullable=False,
        index=True,
    )
    maintenance_type_id: Mapped[int] = mapped_column(
        ForeignKey("maintenance_types.id"),
        nullable=False,
        index=True,
    )
    performed_by_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
    )

    date_opened: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    date_closed: Mapped[date | None] = mapped_column(Date, nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # No maintenance will ever be performed on the asset again
    is_final: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default="false",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    asset: Mapped[Asset] = relationship("Asset", back_populates="events")
    maintenance_type: Mapped["MaintenanceType"] = relationship("MaintenanceType")
    performed_by: Mapped["User"] = relationship("User")

    @property
    def is_open(self) -> bool:
        return self.date_closed is None
