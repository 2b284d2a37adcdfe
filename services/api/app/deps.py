"""FastAPI dependencies.

Settings, the service and the project store are built once per process
and injected into routes; tests replace them via ``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from core.config import Settings, get_settings
from core.consensus import ConsensusService
from core.storage import ProjectRepository, SQLiteProjectRepository


def settings_dep() -> Settings:
    return get_settings()


@lru_cache(maxsize=1)
def _service(settings: Settings) -> ConsensusService:
    return ConsensusService(settings)


@lru_cache(maxsize=1)
def _repository(db_path: str) -> ProjectRepository:
    return SQLiteProjectRepository(db_path)


def service_dep(settings: Settings = Depends(settings_dep)) -> ConsensusService:
    return _service(settings)


def repository_dep(settings: Settings = Depends(settings_dep)) -> ProjectRepository:
    return _repository(settings.db_path)
