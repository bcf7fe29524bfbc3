"""Image URL resolution for feed items."""

from __future__ import annotations

import html
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from catalogsync.domain.model import Item
    from catalogsync.domain.ports import ImageProvider

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class HostedImageProvider:
    """Map each present image slot to ``{base_url}/images/watches/{tag}-{slot}.jpg``.

    Slot numbers follow the feed (1-based), so a gap in the feed leaves a gap
    in the file names. Without a ``base_url`` the feed paths are used as-is.
    """

    base_url: str | None = None

    def image_urls(self, item: Item) -> list[str]:
        urls: list[str] = []
        for slot, path in enumerate(item.image_paths, start=1):
            if not path or not path.strip():
                continue
            if self.base_url:
                base = self.base_url.rstrip("/")
                urls.append(f"{base}/images/watches/{item.tag_number}-{slot}.jpg")
            else:
                # feed paths arrive HTML-escaped (&amp; between query parameters)
                urls.append(html.unescape(path.strip()))
        log.debug("Item %s: %d image url(s)", item.tag_number, len(urls))
        return urls


if TYPE_CHECKING:
    _provider_check: ImageProvider = HostedImageProvider()
