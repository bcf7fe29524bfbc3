"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select

from catalogsync.adapters.sqlalchemy.mappings import item_table
from catalogsync.domain.model import Item

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.orm import Session

    from catalogsync.domain.model import ItemStatus


class SqlAlchemyItemRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Item) -> None:
        self.session.add(entity)

    def get(self, tag_number: str) -> Item | None:
        return self.session.get(Item, tag_number)

    def find_all(self) -> list[Item]:
        stmt = select(Item).order_by(item_table.c.tag_number)
        return list(self.session.execute(stmt).scalars())

    def find_all_keys(self) -> set[str]:
        stmt = select(item_table.c.tag_number)
        return set(self.session.execute(stmt).scalars())

    def find_by_status(self, *statuses: ItemStatus) -> list[Item]:
        if not statuses:
            return []
        stmt = (
            select(Item)
            .where(item_table.c.status.in_(statuses))
            .order_by(item_table.c.tag_number)
        )
        return list(self.session.execute(stmt).scalars())

    def find_by_platform_ids(self, platform_ids: Iterable[str]) -> list[Item]:
        ids = list(dict.fromkeys(platform_ids))
        if not ids:
            return []
        stmt = select(Item).where(item_table.c.platform_id.in_(ids))
        return list(self.session.execute(stmt).scalars())

    def save(self, item: Item) -> None:
        if item in self.session:
            self.session.add(item)
            return
        # detached instance from an earlier unit of work
        self.session.merge(item)

    def delete(self, item: Item) -> None:
        persistent = item if item in self.session else self.session.get(Item, item.tag_number)
        if persistent is not None:
            self.session.delete(persistent)
