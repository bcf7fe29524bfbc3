from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from catalogsync.adapters.sqlalchemy import SqlAlchemyItemRepository
from catalogsync.domain.model import ItemStatus
from tests.helpers.catalog import make_item


def test_add_and_get_round_trips_every_field(sqlite_session: Session) -> None:
    repository = SqlAlchemyItemRepository(sqlite_session)
    item = make_item("100108", image_paths=("img/1.jpg", None, "img/3.jpg"))
    item.mark_published("gid-1", at=datetime(2024, 3, 10, 9, 30, tzinfo=UTC))
    repository.add(item)
    sqlite_session.commit()
    sqlite_session.expunge_all()

    loaded = repository.get("100108")

    assert loaded is not None
    assert loaded is not item
    assert loaded.status is ItemStatus.PUBLISHED
    assert loaded.platform_id == "gid-1"
    assert loaded.price_keystone == Decimal("14250.00")
    assert loaded.image_paths == ("img/1.jpg", None, "img/3.jpg")
    assert loaded.published_at == datetime(2024, 3, 10, 9, 30, tzinfo=UTC)
    assert loaded.equals_for_sync(item)


def test_find_helpers_filter_and_order(sqlite_session: Session) -> None:
    repository = SqlAlchemyItemRepository(sqlite_session)
    repository.add(make_item("300003", status=ItemStatus.PUBLISH_FAILED))
    repository.add(make_item("100001", status=ItemStatus.PUBLISHED, platform_id="11"))
    repository.add(make_item("200002", status=ItemStatus.UPDATED, platform_id="22"))
    sqlite_session.commit()

    assert [item.tag_number for item in repository.find_all()] == ["100001", "200002", "300003"]
    assert repository.find_all_keys() == {"100001", "200002", "300003"}
    failed = repository.find_by_status(ItemStatus.PUBLISH_FAILED, ItemStatus.UPDATE_FAILED)
    assert [item.tag_number for item in failed] == ["300003"]
    assert repository.find_by_status() == []
    matched = repository.find_by_platform_ids(["22", "11", "22"])
    assert {item.tag_number for item in matched} == {"100001", "200002"}
    assert repository.find_by_platform_ids([]) == []


def test_save_merges_a_detached_item(sqlite_session: Session) -> None:
    repository = SqlAlchemyItemRepository(sqlite_session)
    repository.add(make_item("100108"))
    sqlite_session.commit()
    detached = repository.get("100108")
    assert detached is not None
    sqlite_session.expunge(detached)

    detached.status_text = "SOLD"
    repository.save(detached)
    sqlite_session.commit()
    sqlite_session.expunge_all()

    reloaded = repository.get("100108")
    assert reloaded is not None
    assert reloaded.status_text == "SOLD"


def test_delete_removes_attached_and_detached_items(sqlite_session: Session) -> None:
    repository = SqlAlchemyItemRepository(sqlite_session)
    repository.add(make_item("100001"))
    repository.add(make_item("100002"))
    sqlite_session.commit()
    attached = repository.get("100001")
    assert attached is not None

    repository.delete(attached)
    repository.delete(make_item("100002"))
    repository.delete(make_item("999999"))
    sqlite_session.commit()

    assert repository.find_all_keys() == set()
