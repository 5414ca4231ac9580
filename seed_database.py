"""Script to seed a development database with branches, users and maintenance history"""
import asyncio
import logging
import random
from datetime import date, timedelta

from sqlalchemy import func, select

from config import settings
from core.log_config import configure_logging
from core.security import get_password_hash
from db import AsyncSessionLocal, init_db, store
from db_models import AssetType, Branch, MaintenanceType, User, UserRole
from api.assets import db_manager as assets_db
from api.maintenance import db_manager as lifecycle_db

logger = logging.getLogger(__name__)

BRANCHES = ["Central", "North", "South"]
ASSET_TYPES = ["Hammer drill", "Angle grinder", "Generator", "Concrete mixer"]
MAINTENANCE_TYPES = ["Preventive", "Corrective", "Cleaning", "Calibration"]
ASSETS_PER_BRANCH = 12


async def seed_reference_data() -> dict:
    """Insert branches, types and users unless the database already has them."""
    async with AsyncSessionLocal() as session:
        existing = await session.scalar(select(func.count()).select_from(Branch))
        if existing:
            logger.info("Database already has %d branches, skipping reference data", existing)
            return {}

        branches = [Branch(name=name) for name in BRANCHES]
        asset_types = [AssetType(name=name) for name in ASSET_TYPES]
        maintenance_types = [MaintenanceType(name=name) for name in MAINTENANCE_TYPES]
        session.add_all(branches + asset_types + maintenance_types)
        await session.flush()

        users = [
            User(
                email="admin@example.com",
                hashed_password=get_password_hash("adminpass"),
                full_name="Admin",
                role=UserRole.ADMIN.value,
            ),
            User(
                email="manager@example.com",
                hashed_password=get_password_hash("managerpass"),
                full_name="Manager",
                role=UserRole.MANAGER.value,
            ),
        ]
        users += [
            User(
                email=f"operator{branch.id}@example.com",
                hashed_password=get_password_hash("operatorpass"),
                full_name=f"Operator {branch.name}",
                role=UserRole.OPERATOR.value,
                branch_id=branch.id,
            )
            for branch in branches
        ]
        session.add_all(users)
        await session.commit()

        return {
            "branches": [b.id for b in branches],
            "asset_types": [t.id for t in asset_types],
            "maintenance_types": [t.id for t in maintenance_types],
            "performer": users[1].id,
        }


async def seed_history(ids: dict, today: date) -> None:
    """Register assets and give most of them a few months of closed maintenance."""
    rng = random.Random(42)
    for branch_id in ids["branches"]:
        for n in range(ASSETS_PER_BRANCH):
            asset = await assets_db.register_asset(
                store,
                asset_code=f"B{branch_id}-{n + 1:04d}",
                branch_id=branch_id,
                asset_type_id=rng.choice(ids["asset_types"]),
            )
            opened = today - timedelta(days=rng.randint(20, 180))
            while opened < today - timedelta(days=3):
                result = await lifecycle_db.open_maintenance(
                    store,
                    asset.id,
                    rng.choice(ids["maintenance_types"]),
                    ids["performer"],
                    opened,
                )
                closed = opened + timedelta(days=rng.randint(1, 3))
                await lifecycle_db.close_maintenance(store, result.event.id, closed)
                await lifecycle_db.return_to_service(store, asset.id)
                opened = closed + timedelta(days=rng.randint(25, 40))


async def main() -> None:
    configure_logging(settings.LOG_LEVEL)
    await init_db()
    ids = await seed_reference_data()
    if ids:
        await seed_history(ids, date.today())
    logger.info("Seeding complete")


if __name__ == "__main__":
    asyncio.run(main())
