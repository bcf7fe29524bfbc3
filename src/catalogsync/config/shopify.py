"""Shopify Admin API configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, ResponseHook, RetryPolicy

DEFAULT_SHOPIFY_API_VERSION = "2025-04"
SHOPIFY_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class ShopifyConfig:
    """Holds Shopify store credentials and client tuning."""

    store_url: str
    access_token: str
    api_version: str
    resilience: ResilienceConfig

    @property
    def graphql_path(self) -> str:
        return f"/admin/api/{self.api_version}/graphql.json"


def get_shopify_config(
    *,
    resilience: ResilienceConfig | None = None,
    response_hooks: tuple[ResponseHook, ...] = (),
) -> ShopifyConfig:
    values = require_env_vars(("SHOPIFY_STORE_URL", "SHOPIFY_ACCESS_TOKEN"))
    store_url = values["SHOPIFY_STORE_URL"].rstrip("/")
    access_token = values["SHOPIFY_ACCESS_TOKEN"]
    api_version = optional_env("SHOPIFY_API_VERSION") or DEFAULT_SHOPIFY_API_VERSION

    return ShopifyConfig(
        store_url=store_url,
        access_token=access_token,
        api_version=api_version,
        resilience=resilience
        or ResilienceConfig(
            name="shopify",
            base_url=store_url,
            timeout_seconds=SHOPIFY_TIMEOUT_SECONDS,
            # GraphQL cost budget refills at roughly two requests per second
            ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
            retry=RetryPolicy(attempts=5, backoff_factor=1.0),
            cache=None,
            response_hooks=response_hooks,
            default_headers={
                "X-Shopify-Access-Token": access_token,
                "Content-Type": "application/json",
            },
        ),
    )
