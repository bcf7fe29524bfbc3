"""Domain error taxonomy.

Four severities matter to callers:

* abort-run: :class:`FeedCorruptionError`, nothing may be mutated;
* item-fatal: :class:`ItemFatalError` subclasses, recorded on the item as a
  ``*_FAILED`` status and retried next run;
* step-non-fatal: logged and reported through step results, no exception
  escapes the pipeline;
* safety-abort: :class:`SafetyAbortError`, kept apart from ordinary failures so
  operators can tell "something broke" from "too dangerous to apply".
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


class CatalogSyncError(RuntimeError):
    """Root of all catalogsync domain errors."""


class FeedCorruptionError(CatalogSyncError):
    """The feed snapshot is unusable (duplicate or missing natural keys)."""

    def __init__(
        self,
        message: str,
        *,
        duplicate_keys: Sequence[str] = (),
        missing_key_count: int = 0,
    ) -> None:
        super().__init__(message)
        self.duplicate_keys = tuple(duplicate_keys)
        self.missing_key_count = missing_key_count


class IllegalTransitionError(CatalogSyncError):
    """An item was asked to move between lifecycle states that are not connected."""


class ItemFatalError(CatalogSyncError):
    """A failure that aborts processing of a single item."""


class MissingPlatformIdError(ItemFatalError):
    """A changed item has no platform id, so there is nothing to update."""


class EntryCreationError(ItemFatalError):
    """The platform did not return an id for a newly created entry."""


class InvalidInventoryError(ItemFatalError):
    """Inventory levels are incomplete and would be rejected by the platform."""


class CollectionSyncError(CatalogSyncError):
    """Every collection change for an entry failed."""

    def __init__(self, message: str, *, failed_collection_ids: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.failed_collection_ids = tuple(failed_collection_ids)


class SafetyAbortError(CatalogSyncError):
    """Too many destructive operations were requested without ``force``."""

    def __init__(self, message: str, *, requested: int, ceiling: int) -> None:
        super().__init__(message)
        self.requested = requested
        self.ceiling = ceiling


class RemoteCatalogError(CatalogSyncError):
    """Raised by remote catalog clients."""


class RemoteValidationError(RemoteCatalogError):
    """The platform rejected the request payload (user-correctable)."""

    def __init__(self, message: str, *, user_errors: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.user_errors = tuple(user_errors)


class RemoteTransportError(RemoteCatalogError):
    """The request did not complete (network, throttling, server error); retryable."""


__all__ = [
    "CatalogSyncError",
    "CollectionSyncError",
    "EntryCreationError",
    "FeedCorruptionError",
    "IllegalTransitionError",
    "InvalidInventoryError",
    "ItemFatalError",
    "MissingPlatformIdError",
    "RemoteCatalogError",
    "RemoteTransportError",
    "RemoteValidationError",
    "SafetyAbortError",
]
