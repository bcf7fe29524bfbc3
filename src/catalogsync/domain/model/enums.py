"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Mapping


class ItemStatus(StrEnum):
    """Lifecycle state of an item in the local store."""

    NEW_WAITING_PUBLISH = "NEW_WAITING_PUBLISH"
    PUBLISHED = "PUBLISHED"
    PUBLISH_FAILED = "PUBLISH_FAILED"
    CHANGED_WAITING_UPDATE = "CHANGED_WAITING_UPDATE"
    UPDATED = "UPDATED"
    UPDATE_FAILED = "UPDATE_FAILED"
    DELETED = "DELETED"

    @property
    def is_failed(self) -> bool:
        return self in (ItemStatus.PUBLISH_FAILED, ItemStatus.UPDATE_FAILED)

    @property
    def is_pending(self) -> bool:
        """Waiting states left behind by an interrupted run."""
        return self in (ItemStatus.NEW_WAITING_PUBLISH, ItemStatus.CHANGED_WAITING_UPDATE)

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self]

    def can_transition_to(self, target: ItemStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[self]


ALLOWED_TRANSITIONS: Final[Mapping[ItemStatus, frozenset[ItemStatus]]] = {
    ItemStatus.NEW_WAITING_PUBLISH: frozenset(
        {ItemStatus.PUBLISHED, ItemStatus.PUBLISH_FAILED, ItemStatus.DELETED}
    ),
    ItemStatus.PUBLISHED: frozenset({ItemStatus.CHANGED_WAITING_UPDATE, ItemStatus.DELETED}),
    ItemStatus.PUBLISH_FAILED: frozenset(
        {
            ItemStatus.PUBLISHED,
            ItemStatus.PUBLISH_FAILED,
            ItemStatus.CHANGED_WAITING_UPDATE,
            ItemStatus.DELETED,
        }
    ),
    ItemStatus.CHANGED_WAITING_UPDATE: frozenset(
        {ItemStatus.UPDATED, ItemStatus.UPDATE_FAILED, ItemStatus.DELETED}
    ),
    ItemStatus.UPDATED: frozenset({ItemStatus.CHANGED_WAITING_UPDATE, ItemStatus.DELETED}),
    ItemStatus.UPDATE_FAILED: frozenset(
        {
            ItemStatus.UPDATED,
            ItemStatus.UPDATE_FAILED,
            ItemStatus.CHANGED_WAITING_UPDATE,
            ItemStatus.DELETED,
        }
    ),
    ItemStatus.DELETED: frozenset(),
}


class StepStatus(StrEnum):
    """Outcome of one pipeline step."""

    SUCCESS = "success"
    SKIPPED = "skipped"
    DEGRADED = "degraded"
    FATAL = "fatal"


class PipelineKind(StrEnum):
    PUBLISH = "publish"
    UPDATE = "update"
    DELETE = "delete"
