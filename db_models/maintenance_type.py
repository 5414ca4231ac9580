# db_models/maintenance_type.py
from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from db_base import Base


class MaintenanceType(Base):
    __tablename__ = "maintenance_types"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
