# db.py
import logging
from collections.abc import AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)

from config import settings
from core.sql_store import SqlStore
from db_base import Base

logger = logging.getLogger(__name__)


# ---------- Engine & Session (async) ----------

def _engine_options(url: str) -> dict:
    # SQLite (tests, local experiments) has no server connection to ping
    if make_url(url).get_backend_name() == "sqlite":
        return {}
    return {"pool_pre_ping": True, "pool_size": settings.READ_CONCURRENCY + 2}


engine = create_async_engine(
    settings.DATABASE_URL,  # e.g. postgresql+asyncpg://...
    echo=settings.DEBUG,
    future=True,
    **_engine_options(settings.DATABASE_URL),
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False,
)

# Ledger store shared by all requests; every call opens its own session
store = SqlStore(AsyncSessionLocal, page_size=settings.STORE_PAGE_SIZE)


async def init_db() -> None:
    """
    Create the ledger tables from ORM metadata (seeding and local runs).

    Deployments use the Alembic migration instead.
    """
    import db_models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Created tables: %s", ", ".join(sorted(Base.metadata.tables)))


async def dispose_engine() -> None:
    await engine.dispose()


# ---------- FastAPI dependencies ----------

async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Session for the auth lookups; ledger access goes through the store."""
    async with AsyncSessionLocal() as session:
        yield session


def get_store() -> SqlStore:
    """Provide the ledger store."""
    return store
