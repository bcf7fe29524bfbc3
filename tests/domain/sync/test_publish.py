from __future__ import annotations

from catalogsync.domain.errors import RemoteValidationError
from catalogsync.domain.model import CatalogEntry, ItemStatus, StepStatus
from catalogsync.domain.sync import PublishPipeline, SyncContext
from tests.helpers.catalog import FakeImages, FakeRemoteCatalog, RecordingNotifier, make_item


def _inventory_total(remote: FakeRemoteCatalog, entry: CatalogEntry) -> int:
    variant = entry.primary_variant
    assert variant is not None
    assert variant.inventory_item_id is not None
    return sum(level.available or 0 for level in remote.inventory[variant.inventory_item_id])


def test_publish_new_item(
    remote: FakeRemoteCatalog, context: SyncContext, notifier: RecordingNotifier
) -> None:
    item = make_item("100108")

    outcome = PublishPipeline(context).execute(item)

    assert outcome.succeeded
    assert item.status is ItemStatus.PUBLISHED
    assert item.platform_id is not None
    assert item.published_at is not None
    entry = remote.entries[item.platform_id]
    assert entry.skus == ("100108",)
    assert _inventory_total(remote, entry) == 1
    assert len(remote.inventory[entry.variants[0].inventory_item_id or ""]) == 2
    assert [image.position for image in entry.images] == [1, 2]
    assert remote.memberships[item.platform_id]
    assert item.platform_id in remote.published
    assert notifier.subjects == ["Published 100108"]


def test_images_are_not_sent_with_the_create_call(
    remote: FakeRemoteCatalog, context: SyncContext
) -> None:
    PublishPipeline(context).execute(make_item())

    (created,) = remote.called("create_entry")
    sent = created[0]
    assert isinstance(sent, CatalogEntry)
    assert sent.images == []
    (attached,) = remote.called("add_images")
    _, images = attached
    assert isinstance(images, list)
    assert len(images) == 2


def test_sold_item_is_published_with_zero_stock(
    remote: FakeRemoteCatalog, context: SyncContext
) -> None:
    item = make_item(status_text="SOLD")

    PublishPipeline(context).execute(item)

    assert item.platform_id is not None
    assert _inventory_total(remote, remote.entries[item.platform_id]) == 0


def test_creation_failure_marks_item_failed(
    remote: FakeRemoteCatalog, context: SyncContext, notifier: RecordingNotifier
) -> None:
    remote.fail("create_entry", RemoteValidationError("title: can't be blank"))
    item = make_item()

    outcome = PublishPipeline(context).execute(item)

    assert not outcome.succeeded
    assert item.status is ItemStatus.PUBLISH_FAILED
    assert item.platform_id is None
    assert "can't be blank" in (item.system_messages or "")
    assert outcome.step("create") is not None
    assert remote.called("delete_entry") == []
    assert notifier.subjects == ["Publish failed: 100108"]


def test_inventory_failure_rolls_back_created_entry(
    remote: FakeRemoteCatalog, context: SyncContext
) -> None:
    remote.fail("set_inventory", RemoteValidationError("quantity invalid"))
    item = make_item()

    outcome = PublishPipeline(context).execute(item)

    assert item.status is ItemStatus.PUBLISH_FAILED
    assert item.platform_id is None
    assert remote.entries == {}
    inventory = outcome.step("inventory")
    assert inventory is not None
    assert inventory.status is StepStatus.FATAL


def test_failed_rollback_keeps_platform_id(
    remote: FakeRemoteCatalog, context: SyncContext
) -> None:
    remote.fail("set_inventory")
    remote.fail("delete_entry")
    item = make_item()

    PublishPipeline(context).execute(item)

    assert item.status is ItemStatus.PUBLISH_FAILED
    assert item.platform_id in remote.entries


def test_non_fatal_steps_only_degrade(remote: FakeRemoteCatalog, context: SyncContext) -> None:
    remote.fail("add_images")
    remote.fail("publish_to_all_channels")
    remote.fail("add_to_collections")
    remote.fail("add_to_collection")
    item = make_item()

    outcome = PublishPipeline(context).execute(item)

    assert item.status is ItemStatus.PUBLISHED
    assert outcome.degraded
    assert {step.name for step in outcome.degraded_steps} == {
        "attach_images",
        "collections",
        "publish_channels",
    }


def test_image_source_failure_publishes_without_images(
    remote: FakeRemoteCatalog, notifier: RecordingNotifier
) -> None:
    context = SyncContext.create(remote, FakeImages(error=OSError("image host down")), notifier)
    item = make_item()

    outcome = PublishPipeline(context).execute(item)

    assert item.status is ItemStatus.PUBLISHED
    step = outcome.step("image_source")
    assert step is not None
    assert step.status is StepStatus.DEGRADED
    assert remote.called("add_images") == []


def test_retry_after_failure_publishes(remote: FakeRemoteCatalog, context: SyncContext) -> None:
    remote.fail("create_entry")
    item = make_item()
    pipeline = PublishPipeline(context)
    pipeline.execute(item)

    remote.recover("create_entry")
    outcome = pipeline.execute(item)

    assert outcome.succeeded
    assert item.status is ItemStatus.PUBLISHED
    assert item.system_messages is None
    assert len(remote.entries) == 1
