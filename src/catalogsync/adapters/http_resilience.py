"""Async httpx sessions with retries, pacing and an optional feed cache."""

from __future__ import annotations

import time
from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage, FilterPolicy
from hishel import Response as HishelCacheResponse
from hishel._policies import BaseFilter
from hishel.httpx import AsyncCacheClient
from httpx_retries import Retry, RetryTransport

from catalogsync.config.http_resilience import RETRYABLE_METHODS
from catalogsync.config.storage import get_storage_config

if TYPE_CHECKING:
    from types import TracebackType

    from catalogsync.config.http_resilience import CacheConfig, ResilienceConfig, RetryPolicy

log = getLogger(__name__)


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.attempts,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        backoff_jitter=policy.backoff_jitter,
        respect_retry_after_header=True,
        allowed_methods=tuple(RETRYABLE_METHODS),
        status_forcelist=tuple(policy.statuses),
        retry_on_exceptions=policy.exceptions,
    )


class ResilientClient:
    """One async HTTP session configured from a :class:`ResilienceConfig`.

    Requests pass through the rate limiter (if any) and are retried by the
    transport. ``transport`` replaces the network layer underneath; tests
    pass an ``httpx.MockTransport`` here.
    """

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._limiter = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit
            else None
        )

        options: dict[str, Any] = {
            "timeout": config.timeout_seconds,
            "transport": RetryTransport(transport=transport, retry=build_retry(config.retry)),
            "headers": dict(config.default_headers or {}),
            "event_hooks": {"response": list(config.response_hooks)},
        }
        if config.base_url is not None:
            options["base_url"] = config.base_url

        if config.cache is None:
            self._client = httpx.AsyncClient(**options)
        else:
            storage, policy = _cache_components(config.cache)
            self._client = AsyncCacheClient(**options, storage=storage, policy=policy)

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        if self._limiter is not None:
            await self._limiter.acquire()
        started = time.monotonic()
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            log.debug("[%s] %s %s failed: %s", self.config.name, method, url, exc)
            raise
        log.debug(
            "[%s] %s %s -> %d in %.2fs",
            self.config.name,
            method,
            url,
            response.status_code,
            time.monotonic() - started,
        )
        return response

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)


class _CompleteBodyFilter(BaseFilter[HishelCacheResponse]):
    """Cache a response only if its body ends with the configured marker."""

    def __init__(self, marker: bytes) -> None:
        self._marker = marker

    def needs_body(self) -> bool:
        return True

    def apply(self, item: HishelCacheResponse, body: bytes | None) -> bool:  # noqa: ARG002
        if body is None:
            return False
        complete = body.rstrip().endswith(self._marker)
        if not complete:
            log.warning("Not caching a truncated response (%d bytes)", len(body))
        return complete


def _cache_components(config: CacheConfig) -> tuple[AsyncSqliteStorage, FilterPolicy | None]:
    database_path = config.path or str(get_storage_config().http_cache_path())
    storage = AsyncSqliteStorage(database_path=database_path, default_ttl=config.ttl_seconds)
    if config.complete_marker is None:
        return storage, None
    return storage, FilterPolicy(response_filters=[_CompleteBodyFilter(config.complete_marker)])
