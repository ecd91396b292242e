"""Data Service Factory — picks the storage backend from Settings.

Invariants:
    - Called per request; never cached in module state
    - SQL backend requires a session; the JSON backend ignores it
"""

from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.config import Settings
from taskhub.core.domain_types import StorageBackend
from taskhub.core.repository_protocols import DataService
from taskhub.infrastructure.json_data_service import JsonFileDataService
from taskhub.infrastructure.sql_data_service import SqlDataService


def build_data_service(settings: Settings, db: AsyncSession | None) -> DataService:
    if settings.storage_backend == StorageBackend.JSON:
        return JsonFileDataService(settings.json_data_dir)
    if db is None:
        raise RuntimeError("SQL storage backend requires a database session")
    return SqlDataService(db)
