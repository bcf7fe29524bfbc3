"""Transaction boundary around the item store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from catalogsync.domain.ports.persistence import ItemRepository


@dataclass(slots=True)
class ItemRepositories:
    """What a unit of work hands out while its block is open."""

    items: ItemRepository


@runtime_checkable
class ItemUnitOfWork(Protocol):
    """Changes made inside the ``with`` block persist only after :meth:`commit`.

    Leaving the block through an exception rolls back anything uncommitted.
    """

    @property
    def repositories(self) -> ItemRepositories: ...

    def __enter__(self) -> ItemUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
