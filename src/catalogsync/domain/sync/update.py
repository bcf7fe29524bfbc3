"""Bring an existing platform entry in line with its item."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from catalogsync.domain.errors import (
    CollectionSyncError,
    InvalidInventoryError,
    ItemFatalError,
    MissingPlatformIdError,
    RemoteCatalogError,
)
from catalogsync.domain.model import ItemStatus, PipelineKind
from catalogsync.domain.sync.inventory import prepare_levels, total_available
from catalogsync.domain.sync.merge import merge_entry
from catalogsync.domain.sync.outcome import ItemOutcome, StepResult

if TYPE_CHECKING:
    from catalogsync.domain.model import CatalogEntry, Item
    from catalogsync.domain.sync.context import SyncContext
    from catalogsync.domain.sync.merge import MergeReport

log = getLogger(__name__)


class UpdatePipeline:
    """Update an already published entry in place.

    Every remote write is guarded by the merge report (or, for inventory, by
    the remote quantity), so re-running on an unchanged item sends nothing.
    Only the basic-field update is fatal; later steps degrade the outcome.
    """

    def __init__(self, context: SyncContext) -> None:
        self._ctx = context

    def execute(self, item: Item, *, previous: Item | None = None) -> ItemOutcome:
        """Run the update for ``item``.

        ``previous`` is the stored version before the feed change was copied
        in; it decides whether availability flipped. Without it the remote
        quantity is compared against the item instead.
        """
        outcome = ItemOutcome(
            tag_number=item.tag_number, kind=PipelineKind.UPDATE, platform_id=item.platform_id
        )
        if item.status is not ItemStatus.CHANGED_WAITING_UPDATE:
            item.transition_to(ItemStatus.CHANGED_WAITING_UPDATE)

        try:
            entry_id = self._require_platform_id(item)
            remote = self._fetch(item, entry_id)
            image_urls = self._image_urls(item, outcome)
            local = self._ctx.builder.build(item, image_urls, self._ctx.locations())
            report = merge_entry(remote, local)
            outcome.record(StepResult.success("merge", report.summary()))

            self._update_basic(item, local, report, outcome)
            self._update_inventory(item, previous, remote, local, outcome)
            self._update_options(item, entry_id, local, report, outcome)
            self._update_metafields(entry_id, local, report, outcome)
            self._replace_images(item, previous, entry_id, local, report, outcome)
            self._reconcile_collections(item, entry_id, outcome)
        except (ItemFatalError, RemoteCatalogError) as exc:
            self._fail(item, outcome, str(exc))
            return outcome
        except Exception as exc:  # noqa: BLE001
            log.exception("Unexpected error updating item %s", item.tag_number)
            self._fail(item, outcome, f"{type(exc).__name__}: {exc}")
            return outcome

        item.mark_updated()
        outcome.status = item.status
        if outcome.degraded:
            log.warning(
                "Updated item %s with issues in: %s",
                item.tag_number,
                ", ".join(step.name for step in outcome.degraded_steps),
            )
        else:
            log.info("Updated item %s (entry %s)", item.tag_number, entry_id)
        return outcome

    @staticmethod
    def _require_platform_id(item: Item) -> str:
        if not item.platform_id:
            raise MissingPlatformIdError(
                f"Item {item.tag_number} has no platform id; its publish never completed"
            )
        return item.platform_id

    def _fetch(self, item: Item, entry_id: str) -> CatalogEntry:
        remote = self._ctx.client.get_entry(entry_id)
        if remote is None:
            raise ItemFatalError(f"Item {item.tag_number}: entry {entry_id} no longer exists")
        return remote

    def _image_urls(self, item: Item, outcome: ItemOutcome) -> list[str]:
        try:
            return self._ctx.image_urls(item)
        except Exception as exc:  # noqa: BLE001
            log.warning("Item %s: images unavailable: %s", item.tag_number, exc)
            outcome.record(StepResult.degraded("image_source", str(exc)))
            return []

    def _update_basic(
        self, item: Item, local: CatalogEntry, report: MergeReport, outcome: ItemOutcome
    ) -> None:
        if not report.basic_changed:
            outcome.record(StepResult.skipped("basic", "unchanged"))
            return
        try:
            self._ctx.client.update_entry(local)
        except RemoteCatalogError as exc:
            outcome.record(StepResult.fatal("basic", str(exc)))
            raise ItemFatalError(
                f"Item {item.tag_number}: basic field update failed: {exc}"
            ) from exc
        outcome.record(StepResult.success("basic"))

    def _update_inventory(
        self,
        item: Item,
        previous: Item | None,
        remote: CatalogEntry,
        local: CatalogEntry,
        outcome: ItemOutcome,
    ) -> None:
        variant = local.primary_variant
        inventory_item_id = variant.inventory_item_id if variant else None
        if not inventory_item_id:
            outcome.record(StepResult.degraded("inventory", "entry has no inventory item id"))
            return

        remote_variant = next((v for v in remote.variants if v.sku == item.tag_number), None)
        try:
            existing = remote_variant.inventory_levels if remote_variant else None
            if existing is None:
                existing = self._ctx.client.get_inventory(inventory_item_id)

            availability_changed = previous is not None and previous.is_sold != item.is_sold
            if not availability_changed and total_available(existing) == item.available_quantity:
                outcome.record(StepResult.skipped("inventory", "unchanged"))
                return

            levels = prepare_levels(
                item, self._ctx.locations(), existing, inventory_item_id=inventory_item_id
            )
            self._ctx.client.set_inventory(levels)
        except (InvalidInventoryError, RemoteCatalogError) as exc:
            log.warning("Item %s: inventory update failed: %s", item.tag_number, exc)
            outcome.record(StepResult.degraded("inventory", str(exc)))
            return
        outcome.record(StepResult.success("inventory", f"{item.available_quantity} unit(s)"))

    def _update_options(
        self,
        item: Item,
        entry_id: str,
        local: CatalogEntry,
        report: MergeReport,
        outcome: ItemOutcome,
    ) -> None:
        if not report.options.has_changes:
            outcome.record(StepResult.skipped("options", "unchanged"))
            return
        try:
            self._ctx.client.update_options(entry_id, local.options)
        except RemoteCatalogError as exc:
            log.warning("Item %s: option update failed: %s", item.tag_number, exc)
            outcome.record(StepResult.degraded("options", str(exc)))
            return
        outcome.record(StepResult.success("options"))

    def _update_metafields(
        self, entry_id: str, local: CatalogEntry, report: MergeReport, outcome: ItemOutcome
    ) -> None:
        if not report.metadata_changed:
            outcome.record(StepResult.skipped("metafields", "unchanged"))
            return
        try:
            self._ctx.client.update_metafields(
                entry_id,
                local.metafields,
                seo_title=local.seo_title,
                seo_description=local.seo_description,
            )
        except RemoteCatalogError as exc:
            log.warning("Entry %s: metafield/SEO update failed: %s", entry_id, exc)
            outcome.record(StepResult.degraded("metafields", str(exc)))
            return
        outcome.record(StepResult.success("metafields"))

    def _replace_images(
        self,
        item: Item,
        previous: Item | None,
        entry_id: str,
        local: CatalogEntry,
        report: MergeReport,
        outcome: ItemOutcome,
    ) -> None:
        if any(step.name == "image_source" for step in outcome.degraded_steps):
            outcome.record(StepResult.skipped("images", "image source unavailable"))
            return
        # hosted urls are per slot, so only the item's paths reveal new content
        paths_changed = previous is not None and "image_paths" in previous.sync_differences(item)
        if not report.images.has_changes and not paths_changed:
            outcome.record(StepResult.skipped("images", "unchanged"))
            return
        try:
            self._ctx.client.delete_images(entry_id)
            if local.images:
                self._ctx.client.add_images(entry_id, local.images)
        except RemoteCatalogError as exc:
            log.warning("Entry %s: image replacement failed: %s", entry_id, exc)
            outcome.record(StepResult.degraded("images", str(exc)))
            return
        outcome.record(StepResult.success("images", f"{len(local.images)} image(s)"))

    def _reconcile_collections(self, item: Item, entry_id: str, outcome: ItemOutcome) -> None:
        try:
            result = self._ctx.collections.apply(entry_id, item)
        except (CollectionSyncError, RemoteCatalogError) as exc:
            details = (
                f"tag={item.tag_number} platform_id={entry_id} "
                f"category={item.category!r} brand={item.designer!r}: {exc}"
            )
            log.error("Collection reconciliation failed for %s", details)
            outcome.record(StepResult.degraded("collections", details))
            self._ctx.notifier.send(
                f"Collection sync failed: {item.tag_number}",
                f"Collection membership could not be reconciled.\n\n{details}",
            )
            return
        if result.unchanged:
            outcome.record(StepResult.skipped("collections", "unchanged"))
        elif result.failed:
            outcome.record(
                StepResult.degraded("collections", f"failed: {', '.join(result.failed)}")
            )
        else:
            outcome.record(StepResult.success("collections"))

    def _fail(self, item: Item, outcome: ItemOutcome, message: str) -> None:
        log.error("Updating item %s failed: %s", item.tag_number, message)
        item.mark_failed(ItemStatus.UPDATE_FAILED, message)
        outcome.status = item.status
        outcome.error = message
        self._ctx.notifier.send(
            f"Update failed: {item.tag_number}",
            f"Item {item.tag_number} (entry {item.platform_id}) could not be updated.\n\n{message}",
        )
