"""Port for the remote commerce platform catalog.

Every method may raise :class:`~catalogsync.domain.errors.RemoteValidationError`
when the platform rejects the payload, or
:class:`~catalogsync.domain.errors.RemoteTransportError` when the call itself
failed. Calls are blocking; timeouts are the implementation's concern.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from catalogsync.domain.model import (
        CatalogEntry,
        Collection,
        InventoryLevel,
        Location,
        Metafield,
        MetafieldDefinition,
        ProductImage,
        ProductOption,
    )


@runtime_checkable
class RemoteCatalogClient(Protocol):
    # entries
    def create_entry(self, entry: CatalogEntry) -> CatalogEntry: ...

    def update_entry(self, entry: CatalogEntry) -> None:
        """Update title, description, vendor, type, tags and variant prices."""
        ...

    def get_entry(self, entry_id: str) -> CatalogEntry | None: ...

    def delete_entry(self, entry_id: str) -> None: ...

    def get_all_entries(self) -> list[CatalogEntry]:
        """Whole-catalog read; expensive, callers rate-limit it."""
        ...

    def publish_to_all_channels(self, entry_id: str) -> None: ...

    # options and metadata
    def update_options(self, entry_id: str, options: Sequence[ProductOption]) -> None: ...

    def update_metafields(
        self,
        entry_id: str,
        metafields: Sequence[Metafield],
        *,
        seo_title: str | None,
        seo_description: str | None,
    ) -> None: ...

    def get_metafield_definitions(self) -> list[MetafieldDefinition]: ...

    def create_metafield_definition(
        self, definition: MetafieldDefinition
    ) -> MetafieldDefinition: ...

    # inventory
    def get_locations(self) -> list[Location]: ...

    def get_inventory(self, inventory_item_id: str) -> list[InventoryLevel]: ...

    def set_inventory(self, levels: Sequence[InventoryLevel]) -> None: ...

    # images
    def add_images(self, entry_id: str, images: Sequence[ProductImage]) -> None: ...

    def delete_images(self, entry_id: str) -> None: ...

    # collections
    def get_collections(self) -> list[Collection]: ...

    def create_collection(self, title: str) -> Collection: ...

    def get_entry_collection_ids(self, entry_id: str) -> set[str]: ...

    def add_to_collection(self, entry_id: str, collection_id: str) -> None: ...

    def add_to_collections(self, entry_id: str, collection_ids: Sequence[str]) -> None:
        """Batch variant of :meth:`add_to_collection`; all-or-nothing."""
        ...

    def remove_from_collection(self, entry_id: str, collection_id: str) -> None: ...


__all__ = ["RemoteCatalogClient"]
