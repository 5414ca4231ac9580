import json
import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from core.cache import TimedCache
from core.errors import DataAccessError
from core.log_config import configure_logging
from db import dispose_engine
from api.auth.views import router as auth_router
from api.assets.views import router as assets_router
from api.dashboard.views import router as dashboard_router
from api.maintenance.views import router as maintenance_router
from api.reports.views import router as reports_router
from api.schedule.views import router as schedule_router

logger = logging.getLogger(__name__)


def get_cors_origins() -> list[str]:
    """Get CORS origins from environment variable or use defaults."""
    cors_env = os.environ.get("CORS_ORIGINS", "")

    # Try to parse as JSON array
    if cors_env:
        try:
            origins = json.loads(cors_env)
            if isinstance(origins, list):
                return origins
        except json.JSONDecodeError:
            # If not valid JSON, treat as comma-separated
            return [o.strip() for o in cors_env.split(",") if o.strip()]

    # Default origins for local frontends
    return [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
    ]


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    app.state.dashboard_cache = TimedCache(settings.DASHBOARD_CACHE_TTL_SECONDS)
    logger.info("Starting maintenance tracker (env=%s)", settings.APP_ENV)
    yield
    app.state.dashboard_cache.invalidate()
    await dispose_engine()


app = FastAPI(
    title="Asset Maintenance Tracker API",
    description="API for tracking tool maintenance, pickups and upcoming service",
    version="1.0.0",
    lifespan=lifespan,
)

# Get CORS origins from environment or use defaults
cors_origins = get_cors_origins()

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DataAccessError)
async def data_access_error_handler(request: Request, exc: DataAccessError) -> JSONResponse:
    logger.error("Data access failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc), "retryable": exc.retryable},
    )


# Authentication endpoints
app.include_router(auth_router, prefix="/api/v1")

# Business endpoints
app.include_router(assets_router, prefix="/api/v1")
app.include_router(maintenance_router, prefix="/api/v1")
app.include_router(schedule_router, prefix="/api/v1")
app.include_router(dashboard_router, prefix="/api/v1")
app.include_router(reports_router, prefix="/api/v1")


# Health check endpoint
@app.get("/health", tags=["system"])
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy"}
