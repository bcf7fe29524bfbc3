"""Read-only findings of a reconciliation pass and the result of applying them."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from catalogsync.domain.model import utcnow

if TYPE_CHECKING:
    from datetime import datetime


class DiscrepancyKind(StrEnum):
    EXTRA_IN_PLATFORM = "extra_in_platform"
    UNTRACKED_FEED_ITEM = "untracked_feed_item"
    DUPLICATE_IN_PLATFORM = "duplicate_in_platform"
    UNKEYED_IN_PLATFORM = "unkeyed_in_platform"
    EXTRA_IN_STORE = "extra_in_store"
    MISMATCHED_PLATFORM_ID = "mismatched_platform_id"
    IMAGE_COUNT_MISMATCH = "image_count_mismatch"


@dataclass(slots=True, frozen=True, kw_only=True)
class Discrepancy:
    kind: DiscrepancyKind
    tag_number: str | None
    platform_id: str | None = None
    stored_platform_id: str | None = None
    description: str = ""

    def __str__(self) -> str:
        return (
            f"[{self.kind}] tag={self.tag_number} platform_id={self.platform_id} "
            f"stored_id={self.stored_platform_id}: {self.description}"
        )


@dataclass(slots=True, kw_only=True)
class ReconciliationReport:
    """Everything that differs between the store and the platform catalog.

    Entries on the platform with no SKU, or sharing a SKU with an earlier
    entry, are deletion candidates alongside entries the store does not know.
    An entry the store does not know but the feed still lists is adopted into
    the store instead of deleted.
    """

    platform_count: int = 0
    store_count: int = 0
    feed_count: int | None = None
    max_to_delete: int = 0
    analyzed_at: datetime = field(default_factory=utcnow)
    extra_in_platform: list[Discrepancy] = field(default_factory=list)
    untracked_feed_items: list[Discrepancy] = field(default_factory=list)
    duplicate_entries: list[Discrepancy] = field(default_factory=list)
    unkeyed_entries: list[Discrepancy] = field(default_factory=list)
    extra_in_store: list[Discrepancy] = field(default_factory=list)
    mismatched_platform_ids: list[Discrepancy] = field(default_factory=list)
    image_count_mismatches: list[Discrepancy] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def platform_deletions(self) -> list[Discrepancy]:
        return self.extra_in_platform + self.duplicate_entries + self.unkeyed_entries

    @property
    def deletion_count(self) -> int:
        return len(self.platform_deletions) + len(self.extra_in_store)

    @property
    def exceeds_threshold(self) -> bool:
        return self.deletion_count > self.max_to_delete

    @property
    def discrepancy_count(self) -> int:
        return (
            self.deletion_count
            + len(self.untracked_feed_items)
            + len(self.mismatched_platform_ids)
            + len(self.image_count_mismatches)
        )

    @property
    def has_discrepancies(self) -> bool:
        return self.discrepancy_count > 0

    @property
    def message(self) -> str:
        if self.exceeds_threshold:
            return (
                f"{self.deletion_count} deletion(s) exceed the limit of {self.max_to_delete}; "
                "review before forcing"
            )
        if not self.has_discrepancies:
            return "store and platform are in sync"
        return f"{self.discrepancy_count} discrepancy(ies) found"

    def lines(self, *, limit: int = 10) -> list[str]:
        """Human-readable report, ``limit`` details per category."""
        out = [
            f"Analysis at {self.analyzed_at.isoformat(timespec='seconds')}",
            f"  platform entries: {self.platform_count}",
            f"  store items:      {self.store_count}",
            f"  feed items:       {'not read' if self.feed_count is None else self.feed_count}",
            f"  extra in platform:       {len(self.extra_in_platform)}",
            f"  untracked feed items:    {len(self.untracked_feed_items)}",
            f"  duplicates in platform:  {len(self.duplicate_entries)}",
            f"  entries without SKU:     {len(self.unkeyed_entries)}",
            f"  extra in store:          {len(self.extra_in_store)}",
            f"  platform id mismatches:  {len(self.mismatched_platform_ids)}",
            f"  image count mismatches:  {len(self.image_count_mismatches)}",
            f"  deletions: {self.deletion_count} (limit {self.max_to_delete})",
            f"  {self.message}",
        ]
        for name in (
            "extra_in_platform",
            "untracked_feed_items",
            "duplicate_entries",
            "unkeyed_entries",
            "extra_in_store",
            "mismatched_platform_ids",
            "image_count_mismatches",
        ):
            entries: list[Discrepancy] = getattr(self, name)
            out.extend(f"    {entry}" for entry in entries[:limit])
            if len(entries) > limit:
                out.append(f"    ... and {len(entries) - limit} more {name}")
        out.extend(f"  error: {error}" for error in self.errors)
        return out


@dataclass(slots=True, kw_only=True)
class ReconciliationResult:
    before: ReconciliationReport
    after: ReconciliationReport | None = None
    deleted_entries: list[str] = field(default_factory=list)
    removed_items: list[str] = field(default_factory=list)
    adopted_items: list[str] = field(default_factory=list)
    fixed_platform_ids: list[str] = field(default_factory=list)
    marked_for_update: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def message(self) -> str:
        if not self.before.has_discrepancies:
            return "No discrepancies found; nothing to reconcile"
        remaining = self.after.discrepancy_count if self.after is not None else None
        return (
            f"Reconciled {self.before.discrepancy_count} discrepancy(ies): "
            f"deleted {len(self.deleted_entries)} entry(ies), removed "
            f"{len(self.removed_items)} item(s), adopted {len(self.adopted_items)} item(s), "
            f"fixed {len(self.fixed_platform_ids)} id(s), "
            f"marked {len(self.marked_for_update)} for update; remaining={remaining}"
        )
