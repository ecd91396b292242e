"""TaskHub API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map TaskHubError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - SQL storage initialized on startup via the lifespan context manager;
      the JSON backend needs no startup work

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Tables auto-created only for SQLite in development; Postgres goes
      through alembic
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from taskhub.api.error_handlers import register_error_handlers
from taskhub.api.routes import (
    activity,
    admin,
    discord_bot,
    discord_link,
    health,
    interactions,
    projects,
    tasks,
    users,
)
from taskhub.config import get_settings
from taskhub.core.domain_types import StorageBackend
from taskhub.infrastructure.database import init_db
from taskhub.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = None
    if settings.storage_backend == StorageBackend.SQL:
        manager = init_db(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        )
        if settings.is_development and settings.database_url.startswith("sqlite"):
            await manager.create_all()
    logger.info(f"TaskHub API started ({settings.storage_backend.value} storage)")
    yield
    if manager:
        await manager.dispose()
    logger.info("TaskHub API shutting down")


app = FastAPI(title="TaskHub API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(users.router)
app.include_router(projects.router)
app.include_router(tasks.router)
app.include_router(activity.router)
app.include_router(discord_link.router)
app.include_router(discord_bot.router)
app.include_router(interactions.router)
app.include_router(admin.router)

register_error_handlers(app)

# Mounted after the API routes so /api/v1/* takes precedence
if os.path.isdir("static"):
    app.mount("/", StaticFiles(directory="static", html=True), name="static")
