from __future__ import annotations

import pytest

from catalogsync.domain.errors import FeedCorruptionError
from catalogsync.domain.model import ItemStatus
from catalogsync.domain.sync import detect_changes, retry_candidates, validate_feed
from tests.helpers.catalog import make_item


def test_classifies_new_changed_and_deleted() -> None:
    stored = [
        make_item("100001", status=ItemStatus.PUBLISHED),
        make_item("100002", status=ItemStatus.PUBLISHED),
        make_item("100003", status=ItemStatus.PUBLISHED),
    ]
    feed = [
        make_item("100001"),
        make_item("100002", status_text="SOLD"),
        make_item("100004"),
    ]

    changes = detect_changes(feed, stored)

    assert [item.tag_number for item in changes.new] == ["100004"]
    assert [change.tag_number for change in changes.changed] == ["100002"]
    assert changes.changed[0].availability_changed
    assert [item.tag_number for item in changes.deleted] == ["100003"]


def test_force_marks_every_known_item_changed() -> None:
    stored = [make_item("100001"), make_item("100002")]
    feed = [make_item("100001"), make_item("100002")]

    changes = detect_changes(feed, stored, force=True)

    assert {change.tag_number for change in changes.changed} == {"100001", "100002"}
    assert not changes.new
    assert not changes.deleted


def test_duplicate_keys_abort_before_classification() -> None:
    stored = [make_item("100001")]
    feed = [make_item("200001"), make_item("200001"), make_item("100001")]

    with pytest.raises(FeedCorruptionError) as excinfo:
        detect_changes(feed, stored)

    assert excinfo.value.duplicate_keys == ("200001",)


def test_blank_keys_abort() -> None:
    with pytest.raises(FeedCorruptionError) as excinfo:
        validate_feed([make_item("  "), make_item("100001")])

    assert excinfo.value.missing_key_count == 1


def test_retry_candidates_are_failed_or_pending() -> None:
    stored = [
        make_item("1", status=ItemStatus.PUBLISHED),
        make_item("2", status=ItemStatus.PUBLISH_FAILED),
        make_item("3", status=ItemStatus.UPDATE_FAILED),
        make_item("4", status=ItemStatus.CHANGED_WAITING_UPDATE),
        make_item("5", status=ItemStatus.UPDATED),
    ]

    assert [item.tag_number for item in retry_candidates(stored)] == ["2", "3", "4"]


def test_retries_never_duplicate_scheduled_work() -> None:
    failed = make_item("100002", status=ItemStatus.UPDATE_FAILED)
    gone = make_item("100003", status=ItemStatus.PUBLISH_FAILED)
    pending = make_item("100005", status=ItemStatus.NEW_WAITING_PUBLISH)
    stored = [make_item("100001", status=ItemStatus.PUBLISHED), failed, gone, pending]
    feed = [make_item("100001"), make_item("100002", notes="new notes"), make_item("100005")]

    changes = detect_changes(feed, stored).with_retries(retry_candidates(stored))

    assert [change.tag_number for change in changes.changed] == ["100002"]
    assert [item.tag_number for item in changes.deleted] == ["100003"]
    assert [item.tag_number for item in changes.retries] == ["100005"]
    assert changes.work_keys == {"100002", "100005"}


def test_empty_change_set() -> None:
    stored = [make_item("100001")]

    assert detect_changes([make_item("100001")], stored).is_empty
