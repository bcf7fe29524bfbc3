"""SQLAlchemy mapping metadata for the item store."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    Enum,
    Index,
    Numeric,
    String,
    Table,
    Text,
    TypeDecorator,
    orm,
)
from sqlalchemy.orm import configure_mappers

from catalogsync.domain.model import Item, ItemStatus

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class ImagePathsType(TypeDecorator[tuple[str | None, ...]]):
    """Ordered image slots stored as a JSON list; empty slots stay ``null``."""

    impl = Text
    cache_ok = True

    def process_bind_param(
        self, value: tuple[str | None, ...] | None, dialect: Dialect
    ) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(list(value))

    def process_result_value(self, value: str | None, dialect: Dialect) -> tuple[str | None, ...]:
        _ = dialect
        if value is None:
            return ()
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return ()
        entries = cast(list[Any], loaded)
        return tuple(entry if isinstance(entry, str) else None for entry in entries)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "pk": "pk_%(table_name)s",
}

PRICE_TYPE = Numeric(12, 2, asdecimal=True)

item_table = Table(
    "item",
    mapper_registry.metadata,
    Column("tag_number", String(64), primary_key=True),
    Column("description_short", Text),
    Column("category", String(128)),
    Column("designer", String(128)),
    Column("style", String(128)),
    Column("metal_type", String(128)),
    Column("notes", Text),
    Column("status_text", String(64)),
    Column("condition", String(128)),
    Column("dial", String(128)),
    Column("diameter", String(64)),
    Column("movement", String(128)),
    Column("strap", String(128)),
    Column("case", String(128)),
    Column("year", String(32)),
    Column("box_papers", String(128)),
    Column("manufacturer_reference_number", String(128)),
    Column("model", String(255)),
    Column("price_retail", PRICE_TYPE),
    Column("price_sale", PRICE_TYPE),
    Column("price_keystone", PRICE_TYPE),
    Column("image_paths", ImagePathsType(), nullable=False),
    Column("platform_id", String(64)),
    Column(
        "status",
        Enum(ItemStatus, native_enum=False, length=32, validate_strings=True),
        nullable=False,
        default=ItemStatus.NEW_WAITING_PUBLISH,
    ),
    Column("last_updated", UTCDateTime()),
    Column("published_at", UTCDateTime()),
    Column("system_messages", Text),
    Index(None, "platform_id"),
    Index(None, "status"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(Item, item_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
