"""Storefront collections: predicate catalog, id cache and membership reconciler."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from logging import getLogger
from typing import TYPE_CHECKING, Final

from catalogsync.domain.errors import CollectionSyncError, RemoteCatalogError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from catalogsync.domain.model import Collection, Item
    from catalogsync.domain.ports import RemoteCatalogClient

log = getLogger(__name__)

UNDER_PRICE_LIMIT: Final[int] = 5000
MODERN_YEAR: Final[int] = 2000

ROLEX_SPORT_MODELS: Final[tuple[str, ...]] = (
    "Submariner",
    "Explorer",
    "GMT",
    "Daytona",
    "Milgauss",
    "Cosmograph",
    "Sea-Dweller",
)
SPORT_MODELS: Final[tuple[str, ...]] = ("Nautilus", "Royal Oak", "Speedmaster")


def _contains(haystack: str | None, needle: str) -> bool:
    return haystack is not None and needle.casefold() in haystack.casefold()


def _designer_is(name: str) -> Callable[[Item], bool]:
    def predicate(item: Item) -> bool:
        return (item.designer or "").strip() == name

    return predicate


def _year(item: Item) -> int | None:
    try:
        return int((item.year or "").strip())
    except ValueError:
        return None


def _is_under_limit(item: Item) -> bool:
    return item.price_keystone is not None and item.price_keystone < UNDER_PRICE_LIMIT


def _is_rolex(item: Item) -> bool:
    return _designer_is("Rolex")(item)


def _is_rolex_sport(item: Item) -> bool:
    return _is_rolex(item) and any(_contains(item.model, model) for model in ROLEX_SPORT_MODELS)


def _is_sport(item: Item) -> bool:
    return _is_rolex(item) or any(_contains(item.model, model) for model in SPORT_MODELS)


def _is_vintage(item: Item) -> bool:
    if _contains(item.description_short, "vintage"):
        return True
    if item.year is None or _contains(item.year, "Current"):
        return False
    year = _year(item)
    return year is not None and year < MODERN_YEAR


def _is_modern(item: Item) -> bool:
    if item.year is None:
        return False
    if _contains(item.year, "Current"):
        return True
    year = _year(item)
    return year is not None and year >= MODERN_YEAR


def _is_chronograph(item: Item) -> bool:
    return _contains(item.description_short, "Chronograph")


def _is_watch_for(*styles: str) -> Callable[[Item], bool]:
    def predicate(item: Item) -> bool:
        return _contains(item.category, "watches") and (item.style or "").strip() in styles

    return predicate


def _is_jewelry(item: Item) -> bool:
    return _contains(item.category, "jewelry")


def _is_other_brand(item: Item) -> bool:
    return not any(rule.is_brand and rule.matches(item) for rule in CollectionRule)


class CollectionRule(Enum):
    """Every storefront collection the sync manages, with its membership test.

    Rules are evaluated independently; an item usually belongs to several.
    """

    UNDER_5000 = ("Watches Under $5,000", False, _is_under_limit)
    ROLEX = ("Rolex", True, _is_rolex)
    PATEK_PHILIPPE = ("Patek Philippe", True, _designer_is("Patek Philippe"))
    AUDEMARS_PIGUET = ("Audemars Piguet", True, _designer_is("Audemars Piguet"))
    VACHERON_CONSTANTIN = ("Vacheron Constantin", True, _designer_is("Vacheron Constantin"))
    HEUER = ("Heuer", True, _designer_is("Heuer"))
    OMEGA = ("Omega", True, _designer_is("Omega"))
    OTHER_BRAND = ("Other Brand", False, _is_other_brand)
    ROLEX_SPORT_WATCHES = ("Rolex Sport Watches", False, _is_rolex_sport)
    SPORT_WATCHES = ("Sport Watches", False, _is_sport)
    VINTAGE_WATCHES = ("Vintage Watches", False, _is_vintage)
    MODERN_WATCHES = ("Modern Watches", False, _is_modern)
    CHRONOGRAPHS = ("Chronograph", False, _is_chronograph)
    MENS = ("Men's", False, _is_watch_for("Gents", "Unisex"))
    WOMENS = ("Women's", False, _is_watch_for("Ladies", "Unisex"))
    JEWELRY = ("Jewelry", False, _is_jewelry)

    def __init__(self, title: str, is_brand: bool, predicate: Callable[[Item], bool]) -> None:
        self.title = title
        self.is_brand = is_brand
        self.predicate = predicate

    def matches(self, item: Item) -> bool:
        return self.predicate(item)


def desired_rules(item: Item) -> list[CollectionRule]:
    return [rule for rule in CollectionRule if rule.matches(item)]


class CollectionCache:
    """Collection ids by rule, loaded once per process.

    The first caller populates the map under the lock (creating collections the
    platform does not have yet); later callers read it without locking.
    """

    def __init__(
        self,
        client: RemoteCatalogClient,
        *,
        rules: Iterable[CollectionRule] = tuple(CollectionRule),
    ) -> None:
        self._client = client
        self._rules = tuple(rules)
        self._lock = threading.Lock()
        self._by_rule: dict[CollectionRule, Collection] | None = None

    @property
    def is_loaded(self) -> bool:
        return self._by_rule is not None

    def invalidate(self) -> None:
        with self._lock:
            self._by_rule = None

    def get(self, rule: CollectionRule) -> Collection | None:
        return self._load().get(rule)

    def ids_for(self, rules: Iterable[CollectionRule]) -> set[str]:
        by_rule = self._load()
        return {by_rule[rule].id for rule in rules if rule in by_rule}

    def managed_ids(self) -> set[str]:
        return {collection.id for collection in self._load().values()}

    def _load(self) -> dict[CollectionRule, Collection]:
        loaded = self._by_rule
        if loaded is not None:
            return loaded
        with self._lock:
            if self._by_rule is None:
                self._by_rule = self._populate()
            return self._by_rule

    def _populate(self) -> dict[CollectionRule, Collection]:
        existing = {collection.title: collection for collection in self._client.get_collections()}
        by_rule: dict[CollectionRule, Collection] = {}
        for rule in self._rules:
            collection = existing.get(rule.title)
            if collection is None:
                try:
                    collection = self._client.create_collection(rule.title)
                except RemoteCatalogError:
                    log.warning("Could not create collection %r; skipping it", rule.title)
                    continue
                log.info("Created collection %r (%s)", rule.title, collection.id)
            by_rule[rule] = collection
        return by_rule


@dataclass(slots=True)
class CollectionResult:
    unchanged: bool = False
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.failed) and bool(self.added)


class CollectionReconciler:
    def __init__(self, client: RemoteCatalogClient, cache: CollectionCache) -> None:
        self._client = client
        self._cache = cache

    def desired_ids(self, item: Item) -> set[str]:
        return self._cache.ids_for(desired_rules(item))

    def apply(
        self,
        entry_id: str,
        item: Item,
        *,
        current_ids: set[str] | None = None,
    ) -> CollectionResult:
        """Reconcile ``entry_id`` with the collections ``item`` belongs in.

        ``current_ids`` defaults to the platform's view, restricted to managed
        collections so manually curated ones are left alone.
        """
        if current_ids is None:
            managed = self._cache.managed_ids()
            current_ids = self._client.get_entry_collection_ids(entry_id) & managed
        return self.reconcile(entry_id, self.desired_ids(item), current_ids)

    def reconcile(
        self,
        entry_id: str,
        desired_ids: set[str],
        current_ids: set[str],
    ) -> CollectionResult:
        if set(desired_ids) == set(current_ids):
            log.debug("Entry %s collections already up to date", entry_id)
            return CollectionResult(unchanged=True)

        result = CollectionResult()
        for collection_id in sorted(current_ids):
            try:
                self._client.remove_from_collection(entry_id, collection_id)
            except RemoteCatalogError as exc:
                log.warning(
                    "Failed to remove entry %s from collection %s: %s",
                    entry_id,
                    collection_id,
                    exc,
                )
                continue
            result.removed.append(collection_id)

        targets = sorted(desired_ids)
        if not targets:
            return result
        try:
            self._client.add_to_collections(entry_id, targets)
        except RemoteCatalogError as exc:
            log.warning(
                "Batch collection add failed for entry %s (%s); retrying one by one",
                entry_id,
                exc,
            )
            self._add_individually(entry_id, targets, result)
        else:
            result.added.extend(targets)

        if result.failed and not result.added:
            raise CollectionSyncError(
                f"Entry {entry_id}: could not add to any of {len(targets)} collection(s)",
                failed_collection_ids=result.failed,
            )
        if result.failed:
            log.warning(
                "Entry %s added to %d collection(s), %d failed: %s",
                entry_id,
                len(result.added),
                len(result.failed),
                ", ".join(result.failed),
            )
        return result

    def _add_individually(
        self, entry_id: str, targets: list[str], result: CollectionResult
    ) -> None:
        for collection_id in targets:
            try:
                self._client.add_to_collection(entry_id, collection_id)
            except RemoteCatalogError as exc:
                log.warning(
                    "Failed to add entry %s to collection %s: %s", entry_id, collection_id, exc
                )
                result.failed.append(collection_id)
            else:
                result.added.append(collection_id)
