"""Three-way drift audit between the local store and the platform catalog."""

from __future__ import annotations

from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING

from catalogsync.config.sync import SyncConfig
from catalogsync.domain.errors import RemoteCatalogError, SafetyAbortError
from catalogsync.domain.model import ItemStatus

from .report import Discrepancy, DiscrepancyKind, ReconciliationReport, ReconciliationResult

if TYPE_CHECKING:
    from collections.abc import Callable

    from catalogsync.domain.model import CatalogEntry, Item
    from catalogsync.domain.ports import FeedProvider, ItemUnitOfWork, RemoteCatalogClient

log = getLogger(__name__)


class ReconciliationService:
    """Find and (optionally) correct drift the incremental sync cannot see.

    :meth:`analyze` only reads. :meth:`reconcile` re-analyzes, refuses to run
    when the deletions exceed ``max_to_delete`` unless forced, applies the
    corrections and analyzes once more to confirm.

    With a ``feed``, a platform entry the store lost track of is adopted back
    into the store when the feed still lists its SKU; without one every such
    entry is a deletion candidate.
    """

    def __init__(
        self,
        *,
        client: RemoteCatalogClient,
        uow_factory: Callable[[], ItemUnitOfWork],
        config: SyncConfig | None = None,
        feed: FeedProvider | None = None,
    ) -> None:
        self._client = client
        self._uow_factory = uow_factory
        self._config = config or SyncConfig()
        self._feed = feed

    def analyze(self) -> ReconciliationReport:
        report, _ = self._analyze()
        return report

    def _analyze(self) -> tuple[ReconciliationReport, dict[str, Item] | None]:
        entries = self._client.get_all_entries()
        feed_items: dict[str, Item] | None = None
        if self._feed is not None:
            feed_items = {item.tag_number: item for item in self._feed.get_items()}
        with self._uow_factory() as uow:
            stored = uow.repositories.items.find_all()
        report = self._compare(entries, stored, feed_items)
        for line in report.lines():
            log.info(line)
        if report.exceeds_threshold:
            log.warning("Safety check: %s", report.message)
        return report, feed_items

    def reconcile(self, *, force: bool = False) -> ReconciliationResult:
        report, feed_items = self._analyze()
        if report.exceeds_threshold and not force:
            log.error("Reconciliation aborted: %s", report.message)
            raise SafetyAbortError(
                f"Reconciliation aborted: {report.message}",
                requested=report.deletion_count,
                ceiling=report.max_to_delete,
            )

        result = ReconciliationResult(before=report)
        if not report.has_discrepancies:
            log.info("No discrepancies found; nothing to reconcile")
            return result

        if report.exceeds_threshold:
            log.warning("Forcing reconciliation past the safety limit: %s", report.message)
        self._delete_platform_extras(report, result)
        self._fix_store(report, result, feed_items or {})

        result.after = self.analyze()
        log.info(result.message)
        return result

    def _compare(
        self,
        entries: list[CatalogEntry],
        stored: list[Item],
        feed_items: dict[str, Item] | None,
    ) -> ReconciliationReport:
        report = ReconciliationReport(
            platform_count=len(entries),
            store_count=len(stored),
            feed_count=None if feed_items is None else len(feed_items),
            max_to_delete=self._config.max_to_delete,
        )
        stored_by_key = {item.tag_number: item for item in stored}

        by_sku: dict[str, CatalogEntry] = {}
        for entry in entries:
            variant = entry.primary_variant
            sku = (variant.sku or "").strip() if variant else ""
            if not sku:
                report.errors.append(f"Entry {entry.id} has no SKU")
                report.unkeyed_entries.append(
                    Discrepancy(
                        kind=DiscrepancyKind.UNKEYED_IN_PLATFORM,
                        tag_number=None,
                        platform_id=entry.id,
                        description=f"entry {entry.title!r} has no variant SKU",
                    )
                )
                continue
            if sku in by_sku:
                report.duplicate_entries.append(
                    Discrepancy(
                        kind=DiscrepancyKind.DUPLICATE_IN_PLATFORM,
                        tag_number=sku,
                        platform_id=entry.id,
                        description=f"duplicates entry {by_sku[sku].id}",
                    )
                )
                continue
            by_sku[sku] = entry

        for sku, entry in by_sku.items():
            item = stored_by_key.get(sku)
            if item is None and feed_items is not None and sku in feed_items:
                report.untracked_feed_items.append(
                    Discrepancy(
                        kind=DiscrepancyKind.UNTRACKED_FEED_ITEM,
                        tag_number=sku,
                        platform_id=entry.id,
                        description=f"{entry.title!r} is in the feed but not in the store",
                    )
                )
                continue
            if item is None:
                report.extra_in_platform.append(
                    Discrepancy(
                        kind=DiscrepancyKind.EXTRA_IN_PLATFORM,
                        tag_number=sku,
                        platform_id=entry.id,
                        description=f"{entry.title!r} is not tracked in the store",
                    )
                )
                continue
            if item.platform_id != entry.id:
                report.mismatched_platform_ids.append(
                    Discrepancy(
                        kind=DiscrepancyKind.MISMATCHED_PLATFORM_ID,
                        tag_number=sku,
                        platform_id=entry.id,
                        stored_platform_id=item.platform_id,
                        description="store and platform disagree on the entry id",
                    )
                )
            if len(entry.images) != item.image_count:
                report.image_count_mismatches.append(
                    Discrepancy(
                        kind=DiscrepancyKind.IMAGE_COUNT_MISMATCH,
                        tag_number=sku,
                        platform_id=entry.id,
                        description=(
                            f"platform has {len(entry.images)} image(s), "
                            f"store expects {item.image_count}"
                        ),
                    )
                )

        for key, item in stored_by_key.items():
            # unpublished items are the retry queue's business, not drift
            if key in by_sku or not item.platform_id:
                continue
            report.extra_in_store.append(
                Discrepancy(
                    kind=DiscrepancyKind.EXTRA_IN_STORE,
                    tag_number=key,
                    stored_platform_id=item.platform_id,
                    description=f"{item.status} item is missing from the platform",
                )
            )
        return report

    def _delete_platform_extras(
        self, report: ReconciliationReport, result: ReconciliationResult
    ) -> None:
        for discrepancy in report.platform_deletions:
            entry_id = discrepancy.platform_id
            if entry_id is None:
                continue
            try:
                self._client.delete_entry(entry_id)
            except RemoteCatalogError as exc:
                message = f"could not delete entry {entry_id} ({discrepancy.kind}): {exc}"
                log.error(message)
                result.errors.append(message)
                continue
            log.info("Deleted platform entry %s (%s)", entry_id, discrepancy.kind)
            result.deleted_entries.append(entry_id)

    def _fix_store(
        self,
        report: ReconciliationReport,
        result: ReconciliationResult,
        feed_items: dict[str, Item],
    ) -> None:
        with self._uow_factory() as uow:
            items = uow.repositories.items
            for discrepancy in report.untracked_feed_items:
                feed_item = feed_items.get(discrepancy.tag_number or "")
                if feed_item is None or discrepancy.platform_id is None:
                    continue
                if items.get(feed_item.tag_number) is not None:
                    continue
                item = replace(feed_item, status=ItemStatus.NEW_WAITING_PUBLISH, platform_id=None)
                item.mark_published(discrepancy.platform_id)
                # the next sync pushes the feed's copy over the adopted entry
                item.transition_to(ItemStatus.CHANGED_WAITING_UPDATE)
                items.add(item)
                log.info("Adopted item %s as entry %s", item.tag_number, item.platform_id)
                result.adopted_items.append(item.tag_number)

            for discrepancy in report.mismatched_platform_ids:
                item = items.get(discrepancy.tag_number or "")
                if item is None:
                    continue
                log.info(
                    "Item %s: platform id %s -> %s",
                    item.tag_number,
                    item.platform_id,
                    discrepancy.platform_id,
                )
                if item.status is ItemStatus.NEW_WAITING_PUBLISH and discrepancy.platform_id:
                    # the entry already exists, so publishing again would duplicate it
                    item.mark_published(discrepancy.platform_id)
                else:
                    item.platform_id = discrepancy.platform_id
                items.save(item)
                result.fixed_platform_ids.append(item.tag_number)

            for discrepancy in report.extra_in_store:
                item = items.get(discrepancy.tag_number or "")
                if item is None:
                    continue
                # the next sync sees the feed item as new and publishes it again
                log.info("Removing item %s from the store", item.tag_number)
                items.delete(item)
                result.removed_items.append(item.tag_number)

            for discrepancy in report.image_count_mismatches:
                item = items.get(discrepancy.tag_number or "")
                if item is None or not item.status.can_transition_to(
                    ItemStatus.CHANGED_WAITING_UPDATE
                ):
                    continue
                item.transition_to(ItemStatus.CHANGED_WAITING_UPDATE)
                items.save(item)
                result.marked_for_update.append(item.tag_number)
            uow.commit()
