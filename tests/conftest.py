import os

# Settings are chosen at import time
os.environ.setdefault("MODE", "test")

from dataclasses import dataclass
from datetime import date

import pytest
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from httpx import AsyncClient, ASGITransport

from main import app as fastapi_app
import db as project_db
import db_models  # ensure models are imported
from db_base import Base
from db_models import AssetType, Branch, MaintenanceType, User, UserRole
from core.cache import TimedCache
from core.security import get_password_hash, create_access_token
from core.sql_store import SqlStore
from api.assets import db_manager as assets_db


@dataclass
class SeedData:
    branch_id: int
    other_branch_id: int
    asset_type_id: int
    preventive_id: int
    corrective_id: int
    cleaning_id: int
    admin: User
    manager: User
    operator: User


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def engine(tmp_path):
    # A file database so concurrent sessions see each other's commits
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}",
        future=True,
        echo=False,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )


@pytest.fixture
def store(session_factory):
    return SqlStore(session_factory, page_size=1000)


@pytest.fixture
async def seed(session_factory) -> SeedData:
    """Two branches, one asset type, three maintenance types and one user per role."""
    async with session_factory() as session:
        branches = [Branch(name="Central"), Branch(name="North")]
        asset_type = AssetType(name="Hammer drill")
        preventive = MaintenanceType(name="Preventive")
        corrective = MaintenanceType(name="Corrective")
        cleaning = MaintenanceType(name="Cleaning")
        session.add_all(branches + [asset_type, preventive, corrective, cleaning])
        await session.flush()

        admin = User(
            email="admin@example.com",
            hashed_password=get_password_hash("adminpass"),
            full_name="Test Admin",
            role=UserRole.ADMIN.value,
            is_active=True,
        )
        manager = User(
            email="manager@example.com",
            hashed_password=get_password_hash("managerpass"),
            full_name="Test Manager",
            role=UserRole.MANAGER.value,
            is_active=True,
        )
        operator = User(
            email="operator@example.com",
            hashed_password=get_password_hash("operatorpass"),
            full_name="Test Operator",
            role=UserRole.OPERATOR.value,
            branch_id=branches[0].id,
            is_active=True,
        )
        session.add_all([admin, manager, operator])
        await session.commit()

        return SeedData(
            branch_id=branches[0].id,
            other_branch_id=branches[1].id,
            asset_type_id=asset_type.id,
            preventive_id=preventive.id,
            corrective_id=corrective.id,
            cleaning_id=cleaning.id,
            admin=admin,
            manager=manager,
            operator=operator,
        )


@pytest.fixture
def make_asset(store, seed):
    """Register an AVAILABLE asset; defaults to the operator's branch."""
    counter = iter(range(1, 100000))

    async def _make(asset_code: str | None = None, branch_id: int | None = None):
        return await assets_db.register_asset(
            store,
            asset_code=asset_code or f"TOOL-{next(counter):05d}",
            branch_id=branch_id or seed.branch_id,
            asset_type_id=seed.asset_type_id,
        )

    return _make


@pytest.fixture
async def async_client(store, session_factory, seed):
    # Route every dependency at the per-test database
    async def override_get_session():
        async with session_factory() as session:
            yield session

    fastapi_app.dependency_overrides[project_db.get_session] = override_get_session
    fastapi_app.dependency_overrides[project_db.get_store] = lambda: store
    # ASGITransport does not run the lifespan
    fastapi_app.state.dashboard_cache = TimedCache(300)

    async with AsyncClient(transport=ASGITransport(app=fastapi_app), base_url="http://testserver") as ac:
        yield ac

    # Clean up
    fastapi_app.dependency_overrides.clear()


def _headers(user: User) -> dict:
    token = create_access_token(user.id, user.role, user.branch_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(seed):
    """Return authorization headers for admin user."""
    return _headers(seed.admin)


@pytest.fixture
def manager_headers(seed):
    """Return authorization headers for manager user."""
    return _headers(seed.manager)


@pytest.fixture
def operator_headers(seed):
    """Return authorization headers for operator user (branch-scoped)."""
    return _headers(seed.operator)


@pytest.fixture
def today():
    return date(2026, 3, 15)
