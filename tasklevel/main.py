"""Task.level - social gamified task lists."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from tasklevel.core.config import settings
from tasklevel.core.db_client import close_connection, init_db
from tasklevel.core.logging import configure_logfire, instrument_fastapi
from tasklevel.core.scheduler import TRACKED_JOBS, scheduler, start_scheduler, stop_scheduler
from tasklevel.core.scheduler_tracker import job_tracker
from tasklevel.interface.api_router import router as api_router


logger = logging.getLogger(__name__)


def validate_startup_configuration() -> None:
    """Check optional integrations and log what is disabled."""
    try:
        settings.require_credential("push_function_url", "Push fan-out function")
        logger.info("startup_validation", extra={"service": "push", "status": "ok"})
    except ValueError as e:
        logger.warning("startup_validation", extra={"service": "push", "status": "disabled", "error": str(e)})


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Startup
    # Configure logging first so validation logs are captured
    configure_logfire()
    validate_startup_configuration()

    await init_db()
    logger.info("Database initialized")

    start_scheduler()
    yield
    # Shutdown
    stop_scheduler()
    await close_connection()


app = FastAPI(
    title="tasklevel",
    description="Social gamified task lists",
    version="0.1.0",
    lifespan=lifespan,
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)

# Register routers
app.include_router(api_router)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "healthy"}, status_code=200)


@app.get("/health/scheduler")
async def scheduler_health_check() -> JSONResponse:
    """Scheduler health check endpoint with job statuses."""
    job_statuses = {job_name: job_tracker.get_job_status(job_name) for job_name in TRACKED_JOBS}

    has_failures = any(status["consecutive_failures"] > 0 for status in job_statuses.values())
    overall_status = "degraded" if has_failures else "healthy"
    if not scheduler.running:
        overall_status = "stopped"

    return JSONResponse(
        content={"status": overall_status, "jobs": job_statuses, "pending_jobs": len(scheduler.get_jobs())},
        status_code=200 if overall_status == "healthy" else 503,
    )
