from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from catalogsync.domain.errors import IllegalTransitionError
from catalogsync.domain.model import ALLOWED_TRANSITIONS, MAX_IMAGE_PATHS, ItemStatus
from tests.helpers.catalog import make_item


def test_deleted_is_terminal() -> None:
    assert ItemStatus.DELETED.is_terminal
    for status in ItemStatus:
        assert not ItemStatus.DELETED.can_transition_to(status)


def test_every_status_has_a_transition_entry() -> None:
    assert set(ALLOWED_TRANSITIONS) == set(ItemStatus)


def test_illegal_transition_raises_and_leaves_item_untouched() -> None:
    item = make_item(status=ItemStatus.DELETED)

    with pytest.raises(IllegalTransitionError):
        item.transition_to(ItemStatus.PUBLISHED)

    assert item.status is ItemStatus.DELETED
    assert item.last_updated is None


def test_new_item_cannot_skip_to_update() -> None:
    item = make_item()

    with pytest.raises(IllegalTransitionError):
        item.transition_to(ItemStatus.CHANGED_WAITING_UPDATE)


def test_mark_published_sets_bookkeeping() -> None:
    item = make_item(system_messages="old failure")
    when = datetime(2025, 3, 1, 12, tzinfo=UTC)

    item.mark_published("9001", at=when)

    assert item.status is ItemStatus.PUBLISHED
    assert item.platform_id == "9001"
    assert item.published_at == when
    assert item.last_updated == when
    assert item.system_messages is None


def test_mark_failed_records_message() -> None:
    item = make_item()

    item.mark_failed(ItemStatus.PUBLISH_FAILED, "boom")

    assert item.status is ItemStatus.PUBLISH_FAILED
    assert item.system_messages == "boom"
    assert item.status.is_failed


def test_mark_failed_rejects_non_failure_state() -> None:
    item = make_item()

    with pytest.raises(ValueError, match="not a failure state"):
        item.mark_failed(ItemStatus.PUBLISHED, "nope")


def test_failed_items_may_be_retried() -> None:
    item = make_item(status=ItemStatus.PUBLISH_FAILED)

    item.transition_to(ItemStatus.PUBLISH_FAILED)
    item.mark_published("1")

    assert item.status is ItemStatus.PUBLISHED


@pytest.mark.parametrize(
    ("status_text", "expected"),
    [("SOLD", True), (" sold ", True), ("Available", False), (None, False)],
)
def test_sold_flag_and_quantity(status_text: str | None, expected: bool) -> None:
    item = make_item(status_text=status_text)

    assert item.is_sold is expected
    assert item.available_quantity == (0 if expected else 1)


def test_sync_equality_ignores_retail_and_sale_prices() -> None:
    stored = make_item()
    incoming = make_item(price_retail=Decimal("1.00"), price_sale=Decimal("2.00"))

    assert stored.equals_for_sync(incoming)


def test_sync_equality_sees_keystone_price() -> None:
    stored = make_item()
    incoming = make_item(price_keystone=Decimal("13999.00"))

    assert not stored.equals_for_sync(incoming)
    assert stored.sync_differences(incoming) == ["price_keystone"]


def test_sync_equality_ignores_whitespace_and_trailing_image_slots() -> None:
    stored = make_item(image_paths=("a.jpg",), dial="Black")
    incoming = make_item(image_paths=("a.jpg", None, ""), dial=" Black ")

    assert stored.equals_for_sync(incoming)


def test_copy_from_keeps_bookkeeping() -> None:
    stored = make_item(platform_id="77", status=ItemStatus.PUBLISHED)
    incoming = make_item(status_text="SOLD", notes="Sold to a collector")

    stored.copy_from(incoming)

    assert stored.status_text == "SOLD"
    assert stored.notes == "Sold to a collector"
    assert stored.platform_id == "77"
    assert stored.status is ItemStatus.PUBLISHED


def test_image_count_skips_blank_slots() -> None:
    item = make_item(image_paths=("a.jpg", None, "c.jpg", ""))

    assert item.image_count == 2


def test_too_many_image_paths_rejected() -> None:
    paths = tuple(f"{index}.jpg" for index in range(MAX_IMAGE_PATHS + 1))

    with pytest.raises(ValueError, match="at most"):
        make_item(image_paths=paths)
