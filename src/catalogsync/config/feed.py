"""Inventory feed configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_int, optional_env, require_env_vars
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_FEED_PAGE_SIZE = 2000
# feed downloads of a full page routinely take minutes
FEED_TIMEOUT_SECONDS = 300.0
FEED_CACHE_TTL_SECONDS = 15 * 60.0
FEED_DOCUMENT_END = b"</fmresultset>"


@dataclass(frozen=True, slots=True)
class FeedConfig:
    url: str
    page_size: int
    image_base_url: str | None
    resilience: ResilienceConfig


def get_feed_config(
    *,
    resilience: ResilienceConfig | None = None,
    cache_path: str | None = None,
) -> FeedConfig:
    values = require_env_vars(("FEED_URL",))
    return FeedConfig(
        url=values["FEED_URL"],
        page_size=env_int("FEED_PAGE_SIZE", DEFAULT_FEED_PAGE_SIZE, minimum=1),
        image_base_url=optional_env("IMAGE_HOSTING_BASE_URL"),
        resilience=resilience
        or ResilienceConfig(
            name="feed",
            timeout_seconds=FEED_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=1, per_seconds=1.0),
            retry=RetryPolicy(attempts=3, backoff_factor=2.0),
            cache=CacheConfig(
                path=cache_path,
                ttl_seconds=FEED_CACHE_TTL_SECONDS,
                complete_marker=FEED_DOCUMENT_END,
            ),
        ),
    )
