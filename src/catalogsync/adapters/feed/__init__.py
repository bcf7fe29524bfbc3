"""Public interface for the feed adapter."""

from __future__ import annotations

from .client import FeedUnavailableError, FileFeedProvider, HttpFeedProvider
from .translator import item_from_fields, parse_feed, record_fields

__all__ = [
    "FeedUnavailableError",
    "FileFeedProvider",
    "HttpFeedProvider",
    "item_from_fields",
    "parse_feed",
    "record_fields",
]
