"""Ports for persisting items."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable

    from catalogsync.domain.model import Item, ItemStatus


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class ItemRepository(Repository["Item"], Protocol):
    """Persistence contract for items keyed by tag number."""

    def get(self, tag_number: str) -> Item | None: ...

    def find_all(self) -> list[Item]: ...

    def find_all_keys(self) -> set[str]: ...

    def find_by_status(self, *statuses: ItemStatus) -> list[Item]: ...

    def find_by_platform_ids(self, platform_ids: Iterable[str]) -> list[Item]: ...

    def save(self, item: Item) -> None: ...

    def delete(self, item: Item) -> None: ...


__all__ = ["ItemRepository", "Repository"]
