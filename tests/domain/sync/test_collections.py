from __future__ import annotations

from decimal import Decimal

import pytest

from catalogsync.domain.errors import CollectionSyncError
from catalogsync.domain.model import Collection
from catalogsync.domain.sync import (
    CollectionCache,
    CollectionReconciler,
    CollectionRule,
    desired_rules,
)
from tests.helpers.catalog import FakeRemoteCatalog, make_item


def _titles(rules: list[CollectionRule]) -> set[str]:
    return {rule.title for rule in rules}


def test_rolex_sport_watch_rules() -> None:
    rules = desired_rules(make_item())

    assert _titles(rules) == {
        "Rolex",
        "Rolex Sport Watches",
        "Sport Watches",
        "Modern Watches",
        "Men's",
    }


def test_vintage_ladies_watch_of_unlisted_brand() -> None:
    item = make_item(
        designer="Cartier",
        model="Tank",
        description_short="Vintage Cartier Tank Chronograph",
        year="1978",
        style="Ladies",
        price_keystone=Decimal("4200.00"),
    )

    assert _titles(desired_rules(item)) == {
        "Watches Under $5,000",
        "Other Brand",
        "Vintage Watches",
        "Chronograph",
        "Women's",
    }


def test_current_year_counts_as_modern() -> None:
    rules = desired_rules(make_item(year="Current Production"))

    assert CollectionRule.MODERN_WATCHES in rules
    assert CollectionRule.VINTAGE_WATCHES not in rules


def test_jewelry_is_not_sorted_by_gender() -> None:
    item = make_item(designer="Tiffany", category="Jewelry", style="Ladies", model="Ring")

    rules = desired_rules(item)

    assert CollectionRule.JEWELRY in rules
    assert CollectionRule.WOMENS not in rules


def test_cache_creates_missing_collections_once() -> None:
    remote = FakeRemoteCatalog(collections=[Collection(id="c-rolex", title="Rolex")])
    cache = CollectionCache(remote)

    assert cache.get(CollectionRule.ROLEX) == Collection(id="c-rolex", title="Rolex")
    cache.managed_ids()

    assert len(remote.called("get_collections")) == 1
    assert len(remote.called("create_collection")) == len(CollectionRule) - 1


def test_cache_skips_collections_it_cannot_create() -> None:
    remote = FakeRemoteCatalog(collections=[Collection(id="c-rolex", title="Rolex")])
    remote.fail("create_collection")
    cache = CollectionCache(remote)

    assert cache.managed_ids() == {"c-rolex"}
    assert cache.get(CollectionRule.OMEGA) is None


@pytest.fixture
def reconciler(remote: FakeRemoteCatalog) -> CollectionReconciler:
    return CollectionReconciler(remote, CollectionCache(remote))


def test_matching_membership_issues_no_calls(
    remote: FakeRemoteCatalog, reconciler: CollectionReconciler
) -> None:
    result = reconciler.reconcile("500", {"a", "b"}, {"b", "a"})

    assert result.unchanged
    assert remote.calls == []


def test_changed_membership_removes_all_then_adds(
    remote: FakeRemoteCatalog, reconciler: CollectionReconciler
) -> None:
    remote.memberships["500"] = {"a", "b"}

    result = reconciler.reconcile("500", {"b", "c"}, {"a", "b"})

    assert [name for name, _ in remote.calls] == [
        "remove_from_collection",
        "remove_from_collection",
        "add_to_collections",
    ]
    assert result.removed == ["a", "b"]
    assert result.added == ["b", "c"]
    assert remote.memberships["500"] == {"b", "c"}


def test_batch_failure_falls_back_to_single_adds(
    remote: FakeRemoteCatalog, reconciler: CollectionReconciler
) -> None:
    remote.fail("add_to_collections")

    result = reconciler.reconcile("500", {"a", "b"}, set())

    assert [args[1] for args in remote.called("add_to_collection")] == ["a", "b"]
    assert result.added == ["a", "b"]
    assert not result.failed


def test_every_add_failing_raises(
    remote: FakeRemoteCatalog, reconciler: CollectionReconciler
) -> None:
    remote.fail("add_to_collections")
    remote.fail("add_to_collection")

    with pytest.raises(CollectionSyncError) as excinfo:
        reconciler.reconcile("500", {"a", "b"}, set())

    assert excinfo.value.failed_collection_ids == ("a", "b")


def test_apply_ignores_unmanaged_collections(remote: FakeRemoteCatalog) -> None:
    remote.collections = {
        "c-rolex": Collection(id="c-rolex", title="Rolex"),
        "c-staff": Collection(id="c-staff", title="Staff Picks"),
    }
    cache = CollectionCache(remote, rules=[CollectionRule.ROLEX])
    reconciler = CollectionReconciler(remote, cache)
    remote.memberships["500"] = {"c-rolex", "c-staff"}

    result = reconciler.apply("500", make_item())

    assert result.unchanged
    assert remote.memberships["500"] == {"c-rolex", "c-staff"}
