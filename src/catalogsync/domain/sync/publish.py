"""Create a brand-new platform entry for an item, end to end."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from catalogsync.domain.errors import (
    CollectionSyncError,
    EntryCreationError,
    InvalidInventoryError,
    ItemFatalError,
    RemoteCatalogError,
    RemoteValidationError,
)
from catalogsync.domain.model import ItemStatus, PipelineKind
from catalogsync.domain.sync.inventory import prepare_levels
from catalogsync.domain.sync.outcome import ItemOutcome, StepResult

if TYPE_CHECKING:
    from catalogsync.domain.model import CatalogEntry, Item
    from catalogsync.domain.sync.context import SyncContext

log = getLogger(__name__)


class PublishPipeline:
    """Publish an item the platform does not know yet.

    Entry creation and the initial inventory write are fatal; images,
    collections and channel publication only degrade the outcome. Nothing is
    persisted here: the caller saves the item after :meth:`execute` returns.
    """

    def __init__(self, context: SyncContext) -> None:
        self._ctx = context

    def execute(self, item: Item) -> ItemOutcome:
        outcome = ItemOutcome(tag_number=item.tag_number, kind=PipelineKind.PUBLISH)
        created_id: str | None = None
        try:
            image_urls = self._acquire_images(item, outcome)
            entry = self._ctx.builder.build(item, image_urls, self._ctx.locations())
            outcome.record(StepResult.success("build"))

            created = self._create(item, entry, outcome)
            created_id = created.id
            self._attach_images(created_id, entry, outcome)
            self._apply_inventory(item, created, outcome)
            self._apply_collections(created_id, item, outcome)
            self._publish(created_id, outcome)
        except (ItemFatalError, RemoteCatalogError) as exc:
            self._fail(item, outcome, str(exc), created_id)
            return outcome
        except Exception as exc:  # noqa: BLE001
            log.exception("Unexpected error publishing item %s", item.tag_number)
            self._fail(item, outcome, f"{type(exc).__name__}: {exc}", created_id)
            return outcome

        assert created_id is not None
        item.mark_published(created_id)
        outcome.status = item.status
        outcome.platform_id = created_id
        log.info("Published item %s as entry %s", item.tag_number, created_id)
        self._ctx.notifier.send(
            f"Published {item.tag_number}",
            f"Item {item.tag_number} ({item.description_short or ''}) is live "
            f"as entry {created_id}.",
        )
        return outcome

    def _acquire_images(self, item: Item, outcome: ItemOutcome) -> list[str]:
        try:
            urls = self._ctx.image_urls(item)
        except Exception as exc:  # noqa: BLE001
            log.warning("Item %s: images unavailable, publishing without: %s", item.tag_number, exc)
            outcome.record(StepResult.degraded("image_source", str(exc)))
            return []
        outcome.record(StepResult.success("image_source", f"{len(urls)} image(s)"))
        return urls

    def _create(self, item: Item, entry: CatalogEntry, outcome: ItemOutcome) -> CatalogEntry:
        # images go through the attach step
        payload_images, entry.images = entry.images, []
        try:
            created = self._ctx.client.create_entry(entry)
        except RemoteCatalogError as exc:
            outcome.record(StepResult.fatal("create", str(exc)))
            raise EntryCreationError(
                f"Item {item.tag_number}: entry creation failed: {exc}"
            ) from exc
        finally:
            entry.images = payload_images
        if not created.id:
            outcome.record(StepResult.fatal("create", "no entry id returned"))
            raise EntryCreationError(f"Item {item.tag_number}: platform returned no entry id")
        outcome.record(StepResult.success("create", created.id))
        return created

    def _attach_images(self, entry_id: str, entry: CatalogEntry, outcome: ItemOutcome) -> None:
        if not entry.images:
            outcome.record(StepResult.skipped("attach_images", "no images"))
            return
        try:
            self._ctx.client.add_images(entry_id, entry.images)
        except RemoteCatalogError as exc:
            log.warning("Entry %s: attaching images failed: %s", entry_id, exc)
            outcome.record(StepResult.degraded("attach_images", str(exc)))
            return
        outcome.record(StepResult.success("attach_images"))

    def _apply_inventory(self, item: Item, created: CatalogEntry, outcome: ItemOutcome) -> None:
        variant = created.primary_variant
        inventory_item_id = variant.inventory_item_id if variant else None
        if not inventory_item_id:
            outcome.record(StepResult.fatal("inventory", "created entry has no inventory item"))
            raise InvalidInventoryError(
                f"Item {item.tag_number}: entry {created.id} has no inventory item id"
            )
        try:
            existing = self._ctx.client.get_inventory(inventory_item_id)
            levels = prepare_levels(
                item, self._ctx.locations(), existing, inventory_item_id=inventory_item_id
            )
            self._ctx.client.set_inventory(levels)
        except InvalidInventoryError as exc:
            outcome.record(StepResult.fatal("inventory", str(exc)))
            raise
        except RemoteValidationError as exc:
            outcome.record(StepResult.fatal("inventory", str(exc)))
            raise InvalidInventoryError(
                f"Item {item.tag_number}: inventory rejected: {exc}"
            ) from exc
        except RemoteCatalogError as exc:
            outcome.record(StepResult.fatal("inventory", str(exc)))
            raise
        outcome.record(StepResult.success("inventory", f"{item.available_quantity} unit(s)"))

    def _apply_collections(self, entry_id: str, item: Item, outcome: ItemOutcome) -> None:
        try:
            result = self._ctx.collections.apply(entry_id, item, current_ids=set())
        except (CollectionSyncError, RemoteCatalogError) as exc:
            log.warning("Entry %s: collection assignment failed: %s", entry_id, exc)
            outcome.record(StepResult.degraded("collections", str(exc)))
            return
        if result.failed:
            outcome.record(
                StepResult.degraded("collections", f"failed: {', '.join(result.failed)}")
            )
            return
        outcome.record(StepResult.success("collections", f"{len(result.added)} collection(s)"))

    def _publish(self, entry_id: str, outcome: ItemOutcome) -> None:
        try:
            self._ctx.client.publish_to_all_channels(entry_id)
        except RemoteCatalogError as exc:
            log.warning("Entry %s: channel publication failed: %s", entry_id, exc)
            outcome.record(StepResult.degraded("publish_channels", str(exc)))
            return
        outcome.record(StepResult.success("publish_channels"))

    def _fail(self, item: Item, outcome: ItemOutcome, message: str, created_id: str | None) -> None:
        log.error("Publishing item %s failed: %s", item.tag_number, message)
        if created_id is not None and not self._rollback(created_id):
            # keep the id so the retry updates the orphan instead of duplicating it
            item.platform_id = created_id
        item.mark_failed(ItemStatus.PUBLISH_FAILED, message)
        outcome.status = item.status
        outcome.platform_id = item.platform_id
        outcome.error = message
        self._ctx.notifier.send(
            f"Publish failed: {item.tag_number}",
            f"Item {item.tag_number} could not be published.\n\n{message}",
        )

    def _rollback(self, entry_id: str) -> bool:
        try:
            self._ctx.client.delete_entry(entry_id)
        except RemoteCatalogError as exc:
            log.error("Could not roll back entry %s: %s", entry_id, exc)
            return False
        log.info("Rolled back partially published entry %s", entry_id)
        return True
