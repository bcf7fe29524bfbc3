"""Collaborators shared by the publish and update pipelines."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from catalogsync.domain.sync.collections import CollectionCache, CollectionReconciler
from catalogsync.domain.sync.metafields import MetafieldDefinitionCache
from catalogsync.domain.sync.product import ProductBuilder

if TYPE_CHECKING:
    from catalogsync.domain.model import Item, Location
    from catalogsync.domain.ports import ImageProvider, Notifier, RemoteCatalogClient

log = getLogger(__name__)


@dataclass(slots=True)
class SyncContext:
    """Remote client, builders and the process-wide caches for one sync process.

    Stock locations are read from the platform once and shared afterwards.
    """

    client: RemoteCatalogClient
    images: ImageProvider
    notifier: Notifier
    builder: ProductBuilder
    collections: CollectionReconciler
    collection_cache: CollectionCache
    definitions: MetafieldDefinitionCache | None = None
    _locations: list[Location] | None = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @classmethod
    def create(
        cls,
        client: RemoteCatalogClient,
        images: ImageProvider,
        notifier: Notifier,
        *,
        ensure_definitions: bool = True,
    ) -> SyncContext:
        definitions = MetafieldDefinitionCache(client) if ensure_definitions else None
        cache = CollectionCache(client)
        return cls(
            client=client,
            images=images,
            notifier=notifier,
            builder=ProductBuilder(definitions=definitions),
            collections=CollectionReconciler(client, cache),
            collection_cache=cache,
            definitions=definitions,
        )

    def locations(self) -> list[Location]:
        loaded = self._locations
        if loaded is not None:
            return loaded
        with self._lock:
            if self._locations is None:
                self._locations = self.client.get_locations()
                log.debug("Loaded %d stock location(s)", len(self._locations))
            return self._locations

    def image_urls(self, item: Item) -> list[str]:
        return self.images.image_urls(item)

    def invalidate(self) -> None:
        """Forget every cached remote lookup."""
        with self._lock:
            self._locations = None
        self.collection_cache.invalidate()
        if self.definitions is not None:
            self.definitions.invalidate()
