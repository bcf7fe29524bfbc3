"""Three-way diff between a feed snapshot and the local store."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from catalogsync.domain.errors import FeedCorruptionError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from catalogsync.domain.model import Item

log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ItemChange:
    """A stored item paired with the feed version that differs from it."""

    stored: Item
    incoming: Item

    @property
    def tag_number(self) -> str:
        return self.stored.tag_number

    @property
    def availability_changed(self) -> bool:
        return self.stored.is_sold != self.incoming.is_sold


@dataclass(slots=True)
class ChangeSet:
    new: list[Item] = field(default_factory=list)
    changed: list[ItemChange] = field(default_factory=list)
    deleted: list[Item] = field(default_factory=list)
    # stored items re-selected because an earlier run left them failed or pending
    retries: list[Item] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.new or self.changed or self.deleted or self.retries)

    @property
    def work_keys(self) -> set[str]:
        keys = {item.tag_number for item in self.new}
        keys.update(change.tag_number for change in self.changed)
        keys.update(item.tag_number for item in self.retries)
        return keys

    def with_retries(self, candidates: Iterable[Item]) -> ChangeSet:
        """Union stored failed/pending items into the work set.

        An item that is already scheduled as changed is not scheduled twice, and
        an item that disappeared from the feed is handled as a deletion only.
        """
        scheduled = {change.tag_number for change in self.changed}
        scheduled.update(item.tag_number for item in self.new)
        scheduled.update(item.tag_number for item in self.deleted)
        scheduled.update(item.tag_number for item in self.retries)
        retries = list(self.retries)
        for item in candidates:
            if item.tag_number in scheduled:
                continue
            scheduled.add(item.tag_number)
            retries.append(item)
        return ChangeSet(
            new=list(self.new),
            changed=list(self.changed),
            deleted=list(self.deleted),
            retries=retries,
        )


def validate_feed(feed_items: Sequence[Item]) -> None:
    """Abort when the snapshot cannot be trusted as a complete, keyed listing."""

    missing = sum(1 for item in feed_items if not (item.tag_number or "").strip())
    counts = Counter(item.tag_number for item in feed_items if (item.tag_number or "").strip())
    duplicates = sorted(key for key, count in counts.items() if count > 1)

    if missing or duplicates:
        parts: list[str] = []
        if missing:
            parts.append(f"{missing} record(s) without a tag number")
        if duplicates:
            parts.append(f"duplicate tag numbers: {', '.join(duplicates)}")
        message = "Feed rejected: " + "; ".join(parts)
        log.error(message)
        raise FeedCorruptionError(message, duplicate_keys=duplicates, missing_key_count=missing)


def detect_changes(
    feed_items: Sequence[Item],
    stored_items: Iterable[Item],
    *,
    force: bool = False,
) -> ChangeSet:
    """Classify feed items into new, changed and deleted against the store.

    ``force`` marks every item present in both as changed, which is how a full
    re-push is requested.
    """

    validate_feed(feed_items)

    stored_by_key = {item.tag_number: item for item in stored_items}
    feed_keys: set[str] = set()
    result = ChangeSet()

    for incoming in feed_items:
        feed_keys.add(incoming.tag_number)
        stored = stored_by_key.get(incoming.tag_number)
        if stored is None:
            result.new.append(incoming)
            continue
        if force or not stored.equals_for_sync(incoming):
            if not force:
                log.info(
                    "Item %s changed: %s",
                    incoming.tag_number,
                    ", ".join(stored.sync_differences(incoming)),
                )
            result.changed.append(ItemChange(stored=stored, incoming=incoming))

    result.deleted.extend(item for key, item in stored_by_key.items() if key not in feed_keys)

    log.info(
        "Detected changes: new=%d, changed=%d, deleted=%d",
        len(result.new),
        len(result.changed),
        len(result.deleted),
    )
    return result


def retry_candidates(stored_items: Iterable[Item]) -> list[Item]:
    """Stored items a previous run left failed or half-processed."""

    return [item for item in stored_items if item.status.is_failed or item.status.is_pending]
