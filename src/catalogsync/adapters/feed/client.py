"""HTTP and file readers for the inventory feed."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

import httpx

from catalogsync.adapters.http_resilience import ResilientClient
from catalogsync.config.feed import get_feed_config
from catalogsync.domain.errors import FeedCorruptionError

from .translator import parse_feed

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from catalogsync.config.feed import FeedConfig
    from catalogsync.config.http_resilience import ResilienceConfig
    from catalogsync.domain.model import Item
    from catalogsync.domain.ports import FeedProvider

log = getLogger(__name__)


class FeedUnavailableError(RuntimeError):
    """Raised when the feed could not be downloaded."""


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _sorted(items: list[Item]) -> list[Item]:
    return sorted(items, key=lambda item: item.tag_number)


@dataclass(slots=True)
class HttpFeedProvider:
    """Download the feed page by page (``-max``/``-skip``) until a page comes back short."""

    config: FeedConfig = field(default_factory=get_feed_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    def get_items(self) -> list[Item]:
        return asyncio.run(self._fetch_all())

    async def _fetch_all(self) -> list[Item]:
        items: list[Item] = []
        page_size = self.config.page_size
        page = 0
        async with self.client_factory(self.config.resilience) as client:
            while True:
                page_items = await self._fetch_page(client, skip=page * page_size, limit=page_size)
                items.extend(page_items)
                log.info("Feed page %d: %d record(s)", page + 1, len(page_items))
                if len(page_items) < page_size:
                    break
                if len(page_items) > page_size:
                    log.warning("Feed ignored paging; treating page %d as complete", page + 1)
                    break
                page += 1
        log.info("Read %d feed item(s)", len(items))
        return _sorted(items)

    async def _fetch_page(self, client: ResilientClient, *, skip: int, limit: int) -> list[Item]:
        params = {"-max": limit, "-skip": skip}
        try:
            response = await client.get(self.config.url, params=params)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            log.error("Feed download failed (skip=%d): %s", skip, exc)
            raise FeedUnavailableError(f"Feed download failed: {exc}") from exc
        return parse_feed(response.content)


@dataclass(slots=True)
class FileFeedProvider:
    """Read previously downloaded feed documents from disk."""

    paths: Sequence[Path]

    @classmethod
    def from_directory(cls, directory: Path, pattern: str = "*.xml") -> FileFeedProvider:
        return cls(paths=sorted(directory.glob(pattern)))

    def get_items(self) -> list[Item]:
        items: list[Item] = []
        for path in self.paths:
            log.info("Reading feed file %s", path)
            try:
                document = Path(path).read_bytes()
            except OSError as exc:
                raise FeedCorruptionError(f"Cannot read feed file {path}: {exc}") from exc
            items.extend(parse_feed(document))
        log.info("Read %d feed item(s) from %d file(s)", len(items), len(self.paths))
        return _sorted(items)


if TYPE_CHECKING:
    _http_check: FeedProvider = HttpFeedProvider()
    _file_check: FeedProvider = FileFeedProvider(paths=[])
