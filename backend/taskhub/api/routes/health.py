"""Health & Readiness Probes — liveness and readiness endpoints.

Invariants:
    - GET /health/ always returns 200 if the process is up (liveness)
    - GET /health/ready returns 503 if the configured storage is unreachable

Design Decisions:
    - db_manager read through the module at request time (set by the lifespan)
    - The JSON backend is ready when its data directory is writable
"""

import logging
import os

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from taskhub.config import Settings, get_settings
from taskhub.core.domain_types import StorageBackend
from taskhub.infrastructure import database

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check(settings: Settings = Depends(get_settings)):
    """Basic liveness probe."""
    return {
        "status": "healthy",
        "service": "taskhub-api",
        "version": "1.0.0",
        "storage": settings.storage_backend.value,
    }


@router.get("/ready")
async def readiness_check(settings: Settings = Depends(get_settings)):
    if settings.storage_backend == StorageBackend.JSON:
        ok = os.access(settings.json_data_dir, os.W_OK)
        check = "json"
    else:
        ok = await database.db_manager.health_check() if database.db_manager else False
        check = "database"
    if not ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": f"{check}_unavailable"},
        )
    return {"status": "ready", "checks": {check: "healthy"}}
