"""planner - student productivity planner with an AI assistant."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from planner.core.config import settings
from planner.core.db_client import close_connection, init_db
from planner.core.logging import configure_logfire, instrument_fastapi, instrument_pydantic_ai
from planner.interface.api_router import router as api_router
from planner.services.achievement_service import AchievementStore
from planner.services.task_store import TaskStore


logger = logging.getLogger(__name__)


def check_collaborator_configuration() -> None:
    """Log whether the AI collaborator is usable; fallbacks cover a missing key."""
    try:
        settings.require_credential("openrouter_api_key", "OpenRouter API key")
    except ValueError as e:
        logger.warning("startup_validation", extra={"service": "openrouter", "status": "disabled", "error": str(e)})
        return
    logger.info("startup_validation", extra={"service": "openrouter", "status": "ok"})


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Startup
    # Configure logging first so startup logs are captured
    configure_logfire()
    check_collaborator_configuration()

    db_path = settings.sqlite_db_path
    await init_db(db_path=db_path)
    logger.info("Database initialized")

    task_store = TaskStore()
    await task_store.load(db_path=db_path)
    achievement_store = AchievementStore()
    await achievement_store.load(db_path=db_path)

    app.state.db_path = db_path
    app.state.task_store = task_store
    app.state.achievement_store = achievement_store

    instrument_pydantic_ai()
    yield
    # Shutdown
    await close_connection(db_path=db_path)


app = FastAPI(
    title="planner",
    description="Student productivity planner with an AI assistant",
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
