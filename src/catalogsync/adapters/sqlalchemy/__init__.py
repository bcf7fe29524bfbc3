"""SQLAlchemy adapter package for the item store."""

from __future__ import annotations

from .mappings import create_all_tables, item_table, mapper_registry, start_mappers
from .repositories import SqlAlchemyItemRepository
from .unit_of_work import (
    SqlAlchemyItemUnitOfWork,
    StartupError,
    build_engine,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyItemRepository",
    "SqlAlchemyItemUnitOfWork",
    "StartupError",
    "build_engine",
    "configured_engine",
    "create_all_tables",
    "is_started",
    "item_table",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
