"""Retry, pacing and cache settings shared by the feed and Shopify HTTP clients."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Final

import httpx

if TYPE_CHECKING:
    from collections.abc import Mapping

ResponseHook = Callable[[httpx.Response], Awaitable[None] | None]

# GraphQL mutations are POSTs, so POST has to be retryable as well
RETRYABLE_METHODS: Final[frozenset[str]] = frozenset({"DELETE", "GET", "HEAD", "POST", "PUT"})
RETRYABLE_STATUSES: Final[frozenset[int]] = frozenset({429, 500, 502, 503, 504})


class RetryablePayloadError(httpx.HTTPError):
    """A 200 response whose payload asks the caller to try again.

    Shopify reports throttling inside the body (``extensions.code ==
    "THROTTLED"``); response hooks raise this so it is handled like a 429.
    """

    def __init__(self, message: str, *, response: httpx.Response) -> None:
        super().__init__(message)
        self.response = response


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Transport-level retries for one client.

    ``attempts`` counts retries after the first try, ``0`` disables them.
    """

    attempts: int = 4
    backoff_factor: float = 0.5
    max_backoff_wait: float = 60.0
    backoff_jitter: float = 1.0
    statuses: frozenset[int] = RETRYABLE_STATUSES
    exceptions: tuple[type[httpx.HTTPError], ...] = (
        httpx.TimeoutException,
        httpx.NetworkError,
        httpx.RemoteProtocolError,
    )

    @classmethod
    def disabled(cls) -> RetryPolicy:
        return cls(attempts=0)


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class CacheConfig:
    """SQLite response cache; only used for the feed.

    With ``complete_marker`` set, a body is stored only if it ends with that
    marker, so an aborted download is never replayed from the cache.
    """

    path: str | None = None
    ttl_seconds: float | None = None
    complete_marker: bytes | None = None


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    cache: CacheConfig | None = None
    response_hooks: tuple[ResponseHook, ...] = ()
    default_headers: Mapping[str, str] | None = None

    def with_hooks(self, *hooks: ResponseHook) -> ResilienceConfig:
        """Return a copy that runs ``hooks`` after the configured ones."""
        return replace(self, response_hooks=(*self.response_hooks, *hooks))
