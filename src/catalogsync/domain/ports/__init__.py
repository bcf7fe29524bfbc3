"""Domain port definitions for adapters."""

from __future__ import annotations

from .catalog import RemoteCatalogClient
from .feed import FeedProvider, ImageProvider
from .notification import Notifier
from .persistence import ItemRepository, Repository
from .unit_of_work import ItemRepositories, ItemUnitOfWork

__all__ = [
    "FeedProvider",
    "ImageProvider",
    "ItemRepositories",
    "ItemRepository",
    "ItemUnitOfWork",
    "Notifier",
    "RemoteCatalogClient",
    "Repository",
]
