"""Ports for reading the upstream feed and its images."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from catalogsync.domain.model import Item


@runtime_checkable
class FeedProvider(Protocol):
    """Produces a full snapshot of the feed.

    Implementations raise :class:`~catalogsync.domain.errors.FeedCorruptionError`
    for records without a natural key instead of dropping them.
    """

    def get_items(self) -> list[Item]: ...


@runtime_checkable
class ImageProvider(Protocol):
    """Resolves the public image URLs for an item, in display order."""

    def image_urls(self, item: Item) -> list[str]: ...


__all__ = ["FeedProvider", "ImageProvider"]
