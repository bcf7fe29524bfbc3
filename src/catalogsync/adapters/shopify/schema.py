"""Pydantic models describing the Shopify Admin GraphQL payloads."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class ShopifyBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class PageInfo(ShopifyBaseModel):
    has_next_page: bool = Field(default=False, alias="hasNextPage")
    end_cursor: str | None = Field(default=None, alias="endCursor")


class Connection[TNode](ShopifyBaseModel):
    nodes: list[TNode] = Field(default_factory=list)
    page_info: PageInfo = Field(default_factory=PageInfo, alias="pageInfo")


class UserError(ShopifyBaseModel):
    field: list[str] | None = None
    message: str
    code: str | None = None

    def __str__(self) -> str:
        location = ".".join(self.field) if self.field else "input"
        return f"{location}: {self.message}"


class GraphQLError(ShopifyBaseModel):
    message: str
    extensions: dict[str, Any] = Field(default_factory=dict)

    @property
    def code(self) -> str | None:
        code = self.extensions.get("code")
        return code if isinstance(code, str) else None


class GraphQLResponse(ShopifyBaseModel):
    data: dict[str, Any] | None = None
    errors: list[GraphQLError] = Field(default_factory=list)
    extensions: dict[str, Any] = Field(default_factory=dict)

    @property
    def throttled(self) -> bool:
        return any(error.code == "THROTTLED" for error in self.errors)


# Nodes ------------------------------------------------------------------------


class LocationNode(ShopifyBaseModel):
    id: str
    name: str = ""
    is_active: bool = Field(default=True, alias="isActive")


class LocationRef(ShopifyBaseModel):
    id: str


class InventoryQuantity(ShopifyBaseModel):
    name: str
    quantity: int


class InventoryLevelNode(ShopifyBaseModel):
    location: LocationRef
    quantities: list[InventoryQuantity] = Field(default_factory=list)

    @property
    def available(self) -> int | None:
        for quantity in self.quantities:
            if quantity.name == "available":
                return quantity.quantity
        return None


class InventoryItemNode(ShopifyBaseModel):
    id: str
    inventory_levels: Connection[InventoryLevelNode] | None = Field(
        default=None, alias="inventoryLevels"
    )


class SelectedOption(ShopifyBaseModel):
    name: str
    value: str


class VariantNode(ShopifyBaseModel):
    id: str
    sku: str | None = None
    price: str | None = None
    selected_options: list[SelectedOption] = Field(default_factory=list, alias="selectedOptions")
    inventory_item: InventoryItemNode | None = Field(default=None, alias="inventoryItem")

    normalize_sku = field_validator("sku", mode="before")(_blank_to_none)


class OptionValueNode(ShopifyBaseModel):
    name: str


class OptionNode(ShopifyBaseModel):
    id: str
    name: str
    position: int = 1
    option_values: list[OptionValueNode] = Field(default_factory=list, alias="optionValues")


class ImageRef(ShopifyBaseModel):
    url: str


class MediaNode(ShopifyBaseModel):
    """``MediaImage`` fragment; other media types come back without ``image``."""

    id: str
    alt: str | None = None
    image: ImageRef | None = None


class MetafieldNode(ShopifyBaseModel):
    id: str
    namespace: str
    key: str
    value: str
    type: str = "single_line_text_field"


class SeoNode(ShopifyBaseModel):
    title: str | None = None
    description: str | None = None


class CollectionNode(ShopifyBaseModel):
    id: str
    title: str = ""


class ProductNode(ShopifyBaseModel):
    id: str
    title: str = ""
    description_html: str = Field(default="", alias="descriptionHtml")
    vendor: str | None = None
    product_type: str | None = Field(default=None, alias="productType")
    tags: list[str] = Field(default_factory=list)
    seo: SeoNode | None = None
    variants: Connection[VariantNode] = Field(default_factory=Connection[VariantNode])
    options: list[OptionNode] = Field(default_factory=list)
    media: Connection[MediaNode] = Field(default_factory=Connection[MediaNode])
    metafields: Connection[MetafieldNode] = Field(default_factory=Connection[MetafieldNode])
    collections: Connection[CollectionNode] | None = None

    normalize_blank = field_validator("vendor", "product_type", mode="before")(_blank_to_none)


class MetafieldTypeRef(ShopifyBaseModel):
    name: str


class MetafieldDefinitionNode(ShopifyBaseModel):
    id: str
    namespace: str
    key: str
    name: str
    description: str | None = None
    type: MetafieldTypeRef


class PublicationNode(ShopifyBaseModel):
    id: str
    name: str = ""


# Mutation payloads ---------------------------------------------------------------


class MutationPayload(ShopifyBaseModel):
    user_errors: list[UserError] = Field(default_factory=list, alias="userErrors")


class MediaMutationPayload(ShopifyBaseModel):
    user_errors: list[UserError] = Field(default_factory=list, alias="mediaUserErrors")


class ProductPayload(MutationPayload):
    product: ProductNode | None = None


class ProductDeletePayload(MutationPayload):
    deleted_product_id: str | None = Field(default=None, alias="deletedProductId")


class VariantsPayload(MutationPayload):
    product_variants: list[VariantNode] = Field(default_factory=list, alias="productVariants")


class CollectionPayload(MutationPayload):
    collection: CollectionNode | None = None


class MetafieldDefinitionPayload(MutationPayload):
    created_definition: MetafieldDefinitionNode | None = Field(
        default=None, alias="createdDefinition"
    )


class MediaPayload(MediaMutationPayload):
    media: list[MediaNode] = Field(default_factory=list)
