"""GraphQL client for the Shopify Admin API."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

import httpx
from pydantic import ValidationError

from catalogsync.adapters.http_resilience import ResilientClient
from catalogsync.config.http_resilience import RetryablePayloadError
from catalogsync.config.shopify import get_shopify_config
from catalogsync.domain.errors import (
    RemoteCatalogError,
    RemoteTransportError,
    RemoteValidationError,
)

from . import queries
from .schema import (
    CollectionNode,
    CollectionPayload,
    Connection,
    GraphQLResponse,
    InventoryItemNode,
    LocationNode,
    MediaPayload,
    MetafieldDefinitionNode,
    MetafieldDefinitionPayload,
    MutationPayload,
    ProductDeletePayload,
    ProductNode,
    ProductPayload,
    PublicationNode,
    UserError,
    VariantsPayload,
)
from .translator import (
    from_gid,
    inventory_quantity_input,
    is_placeholder_option,
    media_input,
    metafield_definition_input,
    metafield_input,
    option_create_input,
    option_values_input,
    parse_collection,
    parse_inventory_levels,
    parse_location,
    parse_metafield_definition,
    parse_product,
    parse_variant,
    product_create_input,
    product_update_input,
    seo_input,
    to_gid,
    variant_create_input,
    variant_update_input,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Coroutine, Sequence

    from pydantic import BaseModel

    from catalogsync.config.http_resilience import ResilienceConfig
    from catalogsync.config.shopify import ShopifyConfig
    from catalogsync.domain.model import (
        CatalogEntry,
        Collection,
        InventoryLevel,
        Location,
        Metafield,
        MetafieldDefinition,
        ProductImage,
        ProductOption,
    )
    from catalogsync.domain.ports import RemoteCatalogClient

log = getLogger(__name__)

PAGE_SIZE: Final[int] = 250
METAFIELDS_PER_CALL: Final[int] = 25
_THROTTLE_BASE_DELAY_SECONDS = 2.0


async def raise_on_throttle(response: httpx.Response) -> None:
    """Response hook: turn a throttled GraphQL reply into a retryable error.

    Shopify answers throttled queries with HTTP 200 and an ``errors`` entry
    whose ``extensions.code`` is ``THROTTLED``.
    """
    if response.status_code != httpx.codes.OK:
        return
    await response.aread()
    try:
        payload = response.json()
    except json.JSONDecodeError:
        return
    if not isinstance(payload, dict) or "errors" not in payload:
        return
    try:
        parsed = GraphQLResponse.model_validate(payload)
    except ValidationError:
        return
    if parsed.throttled:
        raise RetryablePayloadError("Shopify throttled the request", response=response)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _check_user_errors(operation: str, errors: Sequence[UserError]) -> None:
    if not errors:
        return
    messages = [str(error) for error in errors]
    log.error("Shopify rejected %s: %s", operation, "; ".join(messages))
    raise RemoteValidationError(
        f"{operation} rejected: {'; '.join(messages)}", user_errors=messages
    )


@dataclass(slots=True)
class ShopifyCatalogClient:
    """Blocking facade over the Admin GraphQL API.

    Every public call opens a :class:`ResilientClient` for its own event loop,
    so the client is safe to share between worker threads.
    """

    config: ShopifyConfig = field(default_factory=get_shopify_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    throttle_retries: int = 4
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep)

    # entries -----------------------------------------------------------------

    def create_entry(self, entry: CatalogEntry) -> CatalogEntry:
        return self._run(self._create_entry(entry))

    def update_entry(self, entry: CatalogEntry) -> None:
        self._run(self._update_entry(entry))

    def get_entry(self, entry_id: str) -> CatalogEntry | None:
        data = self._run(self._query(queries.GET_PRODUCT, {"id": to_gid("Product", entry_id)}))
        node = data.get("product")
        if node is None:
            log.info("Product %s not found", entry_id)
            return None
        return parse_product(self._parse(ProductNode, node))

    def delete_entry(self, entry_id: str) -> None:
        data = self._run(
            self._query(queries.DELETE_PRODUCT, {"input": {"id": to_gid("Product", entry_id)}})
        )
        payload = self._parse(ProductDeletePayload, data.get("productDelete"))
        _check_user_errors("productDelete", payload.user_errors)
        log.info("Deleted product %s", entry_id)

    def get_all_entries(self) -> list[CatalogEntry]:
        nodes = self._run(self._paginate(queries.LIST_PRODUCTS, "products", ProductNode))
        log.info("Fetched %d product(s)", len(nodes))
        return [parse_product(node) for node in nodes]

    def publish_to_all_channels(self, entry_id: str) -> None:
        self._run(self._publish(entry_id))

    # options and metadata ----------------------------------------------------

    def update_options(self, entry_id: str, options: Sequence[ProductOption]) -> None:
        self._run(self._update_options(entry_id, options))

    def update_metafields(
        self,
        entry_id: str,
        metafields: Sequence[Metafield],
        *,
        seo_title: str | None,
        seo_description: str | None,
    ) -> None:
        self._run(self._update_metafields(entry_id, metafields, seo_title, seo_description))

    def get_metafield_definitions(self) -> list[MetafieldDefinition]:
        nodes = self._run(
            self._paginate(
                queries.LIST_METAFIELD_DEFINITIONS,
                "metafieldDefinitions",
                MetafieldDefinitionNode,
            )
        )
        return [parse_metafield_definition(node) for node in nodes]

    def create_metafield_definition(self, definition: MetafieldDefinition) -> MetafieldDefinition:
        data = self._run(
            self._query(
                queries.CREATE_METAFIELD_DEFINITION,
                {"definition": metafield_definition_input(definition)},
            )
        )
        payload = self._parse(MetafieldDefinitionPayload, data.get("metafieldDefinitionCreate"))
        _check_user_errors("metafieldDefinitionCreate", payload.user_errors)
        if payload.created_definition is None:
            raise RemoteTransportError("metafieldDefinitionCreate returned no definition")
        log.info("Created metafield definition %s.%s", definition.namespace, definition.key)
        return parse_metafield_definition(payload.created_definition)

    # inventory ---------------------------------------------------------------

    def get_locations(self) -> list[Location]:
        nodes = self._run(self._paginate(queries.LIST_LOCATIONS, "locations", LocationNode))
        return [parse_location(node) for node in nodes if node.is_active]

    def get_inventory(self, inventory_item_id: str) -> list[InventoryLevel]:
        data = self._run(
            self._query(
                queries.GET_INVENTORY_ITEM,
                {"id": to_gid("InventoryItem", inventory_item_id)},
            )
        )
        node = data.get("inventoryItem")
        if node is None:
            raise RemoteValidationError(f"Inventory item {inventory_item_id} does not exist")
        return parse_inventory_levels(self._parse(InventoryItemNode, node))

    def set_inventory(self, levels: Sequence[InventoryLevel]) -> None:
        if not levels:
            return
        try:
            quantities = [inventory_quantity_input(level) for level in levels]
        except ValueError as exc:
            raise RemoteValidationError(str(exc), user_errors=[str(exc)]) from exc
        data = self._run(
            self._query(
                queries.SET_INVENTORY,
                {
                    "input": {
                        "name": "available",
                        "reason": "correction",
                        "ignoreCompareQuantity": True,
                        "quantities": quantities,
                    }
                },
            )
        )
        payload = self._parse(MutationPayload, data.get("inventorySetQuantities"))
        _check_user_errors("inventorySetQuantities", payload.user_errors)

    # images ------------------------------------------------------------------

    def add_images(self, entry_id: str, images: Sequence[ProductImage]) -> None:
        if not images:
            return
        ordered = sorted(images, key=lambda image: image.position)
        data = self._run(
            self._query(
                queries.CREATE_MEDIA,
                {
                    "productId": to_gid("Product", entry_id),
                    "media": [media_input(image) for image in ordered],
                },
            )
        )
        payload = self._parse(MediaPayload, data.get("productCreateMedia"))
        _check_user_errors("productCreateMedia", payload.user_errors)
        log.debug("Attached %d image(s) to product %s", len(payload.media), entry_id)

    def delete_images(self, entry_id: str) -> None:
        self._run(self._delete_images(entry_id))

    # collections -------------------------------------------------------------

    def get_collections(self) -> list[Collection]:
        nodes = self._run(self._paginate(queries.LIST_COLLECTIONS, "collections", CollectionNode))
        return [parse_collection(node) for node in nodes]

    def create_collection(self, title: str) -> Collection:
        data = self._run(self._query(queries.CREATE_COLLECTION, {"input": {"title": title}}))
        payload = self._parse(CollectionPayload, data.get("collectionCreate"))
        _check_user_errors("collectionCreate", payload.user_errors)
        if payload.collection is None:
            raise RemoteTransportError(f"collectionCreate returned no collection for {title!r}")
        log.info("Created collection %r", title)
        return parse_collection(payload.collection)

    def get_entry_collection_ids(self, entry_id: str) -> set[str]:
        data = self._run(
            self._query(queries.GET_PRODUCT_COLLECTIONS, {"id": to_gid("Product", entry_id)})
        )
        node = data.get("product")
        if node is None:
            raise RemoteValidationError(f"Product {entry_id} does not exist")
        product = self._parse(ProductNode, node)
        collections = product.collections.nodes if product.collections else []
        return {from_gid(collection.id) for collection in collections}

    def add_to_collection(self, entry_id: str, collection_id: str) -> None:
        data = self._run(
            self._query(
                queries.ADD_TO_COLLECTION,
                {
                    "id": to_gid("Collection", collection_id),
                    "productIds": [to_gid("Product", entry_id)],
                },
            )
        )
        payload = self._parse(MutationPayload, data.get("collectionAddProducts"))
        _check_user_errors("collectionAddProducts", payload.user_errors)

    def add_to_collections(self, entry_id: str, collection_ids: Sequence[str]) -> None:
        if not collection_ids:
            return
        data = self._run(
            self._query(
                queries.UPDATE_PRODUCT,
                {
                    "product": {
                        "id": to_gid("Product", entry_id),
                        "collectionsToJoin": [
                            to_gid("Collection", collection_id) for collection_id in collection_ids
                        ],
                    }
                },
            )
        )
        payload = self._parse(ProductPayload, data.get("productUpdate"))
        _check_user_errors("productUpdate(collectionsToJoin)", payload.user_errors)

    def remove_from_collection(self, entry_id: str, collection_id: str) -> None:
        data = self._run(
            self._query(
                queries.REMOVE_FROM_COLLECTION,
                {
                    "id": to_gid("Collection", collection_id),
                    "productIds": [to_gid("Product", entry_id)],
                },
            )
        )
        payload = self._parse(MutationPayload, data.get("collectionRemoveProducts"))
        _check_user_errors("collectionRemoveProducts", payload.user_errors)

    # async workflows ---------------------------------------------------------

    async def _create_entry(self, entry: CatalogEntry) -> CatalogEntry:
        async with self._session() as client:
            data = await self._execute(
                client, queries.CREATE_PRODUCT, {"product": product_create_input(entry)}
            )
            payload = self._parse(ProductPayload, data.get("productCreate"))
            _check_user_errors("productCreate", payload.user_errors)
            if payload.product is None:
                raise RemoteTransportError(f"productCreate returned no product for {entry.title!r}")
            product_id = payload.product.id

            try:
                data = await self._execute(
                    client,
                    queries.CREATE_VARIANTS,
                    {
                        "productId": product_id,
                        "strategy": "REMOVE_STANDALONE_VARIANT",
                        "variants": [
                            variant_create_input(variant, entry.options)
                            for variant in entry.variants
                        ],
                    },
                )
                variants = self._parse(VariantsPayload, data.get("productVariantsBulkCreate"))
                _check_user_errors("productVariantsBulkCreate", variants.user_errors)
            except RemoteCatalogError:
                log.warning("Variant creation failed; removing half-created product %s", product_id)
                await self._discard(client, product_id)
                raise

        created = parse_product(payload.product)
        created.variants = [parse_variant(variant) for variant in variants.product_variants]
        log.info("Created product %s (%s)", created.id, entry.title)
        return created

    async def _discard(self, client: ResilientClient, product_gid: str) -> None:
        try:
            await self._execute(client, queries.DELETE_PRODUCT, {"input": {"id": product_gid}})
        except RemoteCatalogError as exc:
            log.error("Could not remove half-created product %s: %s", product_gid, exc)

    async def _update_entry(self, entry: CatalogEntry) -> None:
        async with self._session() as client:
            data = await self._execute(
                client, queries.UPDATE_PRODUCT, {"product": product_update_input(entry)}
            )
            payload = self._parse(ProductPayload, data.get("productUpdate"))
            _check_user_errors("productUpdate", payload.user_errors)

            updates = [variant_update_input(variant) for variant in entry.variants if variant.id]
            if not updates:
                return
            data = await self._execute(
                client,
                queries.UPDATE_VARIANTS,
                {"productId": to_gid("Product", entry.id or ""), "variants": updates},
            )
            variants = self._parse(VariantsPayload, data.get("productVariantsBulkUpdate"))
            _check_user_errors("productVariantsBulkUpdate", variants.user_errors)

    async def _update_options(self, entry_id: str, options: Sequence[ProductOption]) -> None:
        product_gid = to_gid("Product", entry_id)
        async with self._session() as client:
            data = await self._execute(client, queries.GET_PRODUCT_OPTIONS, {"id": product_gid})
            if data.get("product") is None:
                raise RemoteValidationError(f"Product {entry_id} does not exist")
            product = self._parse(ProductNode, data.get("product"))
            remote_by_name = {option.name: option for option in product.options}

            missing = [option for option in options if option.name not in remote_by_name]
            if missing:
                data = await self._execute(
                    client,
                    queries.CREATE_OPTIONS,
                    {
                        "productId": product_gid,
                        "options": [option_create_input(option) for option in missing],
                        "variantStrategy": "LEAVE_AS_IS",
                    },
                )
                payload = self._parse(MutationPayload, data.get("productOptionsCreate"))
                _check_user_errors("productOptionsCreate", payload.user_errors)

            for option in options:
                remote = remote_by_name.get(option.name)
                if remote is None:
                    continue
                known = {value.name for value in remote.option_values}
                new_values = [value for value in option.values if value not in known]
                if not new_values and remote.position == option.position:
                    continue
                data = await self._execute(
                    client,
                    queries.UPDATE_OPTION,
                    {
                        "productId": product_gid,
                        "option": {"id": remote.id, "position": option.position},
                        "optionValuesToAdd": [{"name": value} for value in new_values],
                    },
                )
                payload = self._parse(MutationPayload, data.get("productOptionUpdate"))
                _check_user_errors("productOptionUpdate", payload.user_errors)

            wanted = {option.name for option in options}
            obsolete = [
                option.id
                for option in product.options
                if option.name not in wanted and not is_placeholder_option(option)
            ]
            if obsolete:
                data = await self._execute(
                    client,
                    queries.DELETE_OPTIONS,
                    {"productId": product_gid, "options": obsolete, "strategy": "POSITION"},
                )
                payload = self._parse(MutationPayload, data.get("productOptionsDelete"))
                _check_user_errors("productOptionsDelete", payload.user_errors)

            # point the single variant at the current values
            variant_updates = [
                {
                    "id": variant.id,
                    "optionValues": option_values_input(
                        options, [option.values[0] for option in options if option.values]
                    ),
                }
                for variant in product.variants.nodes
            ]
            if options and variant_updates:
                data = await self._execute(
                    client,
                    queries.UPDATE_VARIANTS,
                    {"productId": product_gid, "variants": variant_updates},
                )
                variants = self._parse(VariantsPayload, data.get("productVariantsBulkUpdate"))
                _check_user_errors("productVariantsBulkUpdate(options)", variants.user_errors)

    async def _update_metafields(
        self,
        entry_id: str,
        metafields: Sequence[Metafield],
        seo_title: str | None,
        seo_description: str | None,
    ) -> None:
        async with self._session() as client:
            inputs = [metafield_input(metafield, owner_id=entry_id) for metafield in metafields]
            for start in range(0, len(inputs), METAFIELDS_PER_CALL):
                data = await self._execute(
                    client,
                    queries.SET_METAFIELDS,
                    {"metafields": inputs[start : start + METAFIELDS_PER_CALL]},
                )
                payload = self._parse(MutationPayload, data.get("metafieldsSet"))
                _check_user_errors("metafieldsSet", payload.user_errors)

            seo = seo_input(seo_title, seo_description)
            if seo:
                data = await self._execute(
                    client,
                    queries.UPDATE_PRODUCT,
                    {"product": {"id": to_gid("Product", entry_id), "seo": seo}},
                )
                product = self._parse(ProductPayload, data.get("productUpdate"))
                _check_user_errors("productUpdate(seo)", product.user_errors)

    async def _delete_images(self, entry_id: str) -> None:
        product_gid = to_gid("Product", entry_id)
        async with self._session() as client:
            data = await self._execute(client, queries.GET_PRODUCT_MEDIA, {"id": product_gid})
            if data.get("product") is None:
                raise RemoteValidationError(f"Product {entry_id} does not exist")
            product = self._parse(ProductNode, data.get("product"))
            media = product.media
            media_ids = [node.id for node in media.nodes]
            if not media_ids:
                return
            data = await self._execute(
                client,
                queries.DELETE_MEDIA,
                {"productId": product_gid, "mediaIds": media_ids},
            )
            payload = self._parse(MediaPayload, data.get("productDeleteMedia"))
            _check_user_errors("productDeleteMedia", payload.user_errors)
            log.debug("Deleted %d image(s) from product %s", len(media_ids), entry_id)

    async def _publish(self, entry_id: str) -> None:
        async with self._session() as client:
            publications = await self._paginate_with(
                client, queries.LIST_PUBLICATIONS, "publications", PublicationNode
            )
            if not publications:
                log.warning("No sales channels to publish product %s to", entry_id)
                return
            data = await self._execute(
                client,
                queries.PUBLISH,
                {
                    "id": to_gid("Product", entry_id),
                    "input": [{"publicationId": publication.id} for publication in publications],
                },
            )
            payload = self._parse(MutationPayload, data.get("publishablePublish"))
            _check_user_errors("publishablePublish", payload.user_errors)
            log.debug("Published product %s to %d channel(s)", entry_id, len(publications))

    async def _paginate[TNode: BaseModel](
        self, query: str, root: str, node_type: type[TNode]
    ) -> list[TNode]:
        async with self._session() as client:
            return await self._paginate_with(client, query, root, node_type)

    async def _paginate_with[TNode: BaseModel](
        self,
        client: ResilientClient,
        query: str,
        root: str,
        node_type: type[TNode],
    ) -> list[TNode]:
        nodes: list[TNode] = []
        cursor: str | None = None
        while True:
            data = await self._execute(client, query, {"first": PAGE_SIZE, "after": cursor})
            page = self._parse(Connection[node_type], data.get(root))
            nodes.extend(page.nodes)
            if not page.page_info.has_next_page or not page.page_info.end_cursor:
                return nodes
            cursor = page.page_info.end_cursor

    # transport ---------------------------------------------------------------

    def _run[T](self, coro: Coroutine[Any, Any, T]) -> T:
        return asyncio.run(coro)

    def _session(self) -> ResilientClient:
        return self.client_factory(self.config.resilience.with_hooks(raise_on_throttle))

    async def _query(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        async with self._session() as client:
            return await self._execute(client, query, variables)

    async def _execute(
        self,
        client: ResilientClient,
        query: str,
        variables: dict[str, Any],
    ) -> dict[str, Any]:
        attempt = 0
        while True:
            try:
                response = await client.post(
                    self.config.graphql_path, json={"query": query, "variables": variables}
                )
                response.raise_for_status()
            except RetryablePayloadError as exc:
                attempt += 1
                if attempt > self.throttle_retries:
                    raise RemoteTransportError(
                        f"Shopify still throttling after {self.throttle_retries} retries"
                    ) from exc
                delay = _THROTTLE_BASE_DELAY_SECONDS * attempt
                log.warning("Shopify throttled the request; retrying in %.1fs", delay)
                await self.sleep(delay)
                continue
            except httpx.HTTPError as exc:
                log.error("Shopify request failed: %s", exc)
                raise RemoteTransportError(f"Shopify request failed: {exc}") from exc
            break

        try:
            parsed = GraphQLResponse.model_validate(response.json())
        except (json.JSONDecodeError, ValidationError) as exc:
            raise RemoteTransportError(f"Unexpected Shopify response: {exc}") from exc
        if parsed.errors:
            messages = "; ".join(error.message for error in parsed.errors)
            log.error("Shopify GraphQL errors: %s", messages)
            raise RemoteTransportError(f"Shopify GraphQL errors: {messages}")
        if parsed.data is None:
            raise RemoteTransportError("Shopify response carried no data")
        return parsed.data

    @staticmethod
    def _parse[TModel: BaseModel](model: type[TModel], payload: object) -> TModel:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise RemoteTransportError(f"Unexpected Shopify payload: {exc}") from exc


if TYPE_CHECKING:
    _client_check: RemoteCatalogClient = ShopifyCatalogClient()
