"""GraphQL documents sent to the Shopify Admin API."""

from __future__ import annotations

from typing import Final

_USER_ERRORS = "userErrors { field message }"

_VARIANT_FIELDS = """
    id
    sku
    price
    selectedOptions { name value }
    inventoryItem { id }
"""

_MEDIA_FIELDS = """
    id
    alt
    ... on MediaImage { image { url } }
"""

PRODUCT_FIELDS: Final[str] = f"""
    id
    title
    descriptionHtml
    vendor
    productType
    tags
    seo {{ title description }}
    options {{ id name position optionValues {{ name }} }}
    variants(first: 100) {{ nodes {{ {_VARIANT_FIELDS} }} }}
    media(first: 250) {{ nodes {{ {_MEDIA_FIELDS} }} }}
    metafields(first: 100) {{ nodes {{ id namespace key value type }} }}
    collections(first: 250) {{ nodes {{ id title }} }}
"""

GET_PRODUCT: Final[str] = f"""
query getProduct($id: ID!) {{
  product(id: $id) {{ {PRODUCT_FIELDS} }}
}}
"""

LIST_PRODUCTS: Final[str] = f"""
query listProducts($first: Int!, $after: String) {{
  products(first: $first, after: $after) {{
    nodes {{
      id
      title
      variants(first: 100) {{ nodes {{ {_VARIANT_FIELDS} }} }}
      media(first: 250) {{ nodes {{ {_MEDIA_FIELDS} }} }}
    }}
    pageInfo {{ hasNextPage endCursor }}
  }}
}}
"""

CREATE_PRODUCT: Final[str] = f"""
mutation productCreate($product: ProductCreateInput!) {{
  productCreate(product: $product) {{
    product {{ {PRODUCT_FIELDS} }}
    {_USER_ERRORS}
  }}
}}
"""

UPDATE_PRODUCT: Final[str] = f"""
mutation productUpdate($product: ProductUpdateInput!) {{
  productUpdate(product: $product) {{
    product {{ id }}
    {_USER_ERRORS}
  }}
}}
"""

DELETE_PRODUCT: Final[str] = f"""
mutation productDelete($input: ProductDeleteInput!) {{
  productDelete(input: $input) {{
    deletedProductId
    {_USER_ERRORS}
  }}
}}
"""

CREATE_VARIANTS: Final[str] = f"""
mutation productVariantsBulkCreate(
  $productId: ID!
  $variants: [ProductVariantsBulkInput!]!
  $strategy: ProductVariantsBulkCreateStrategy
) {{
  productVariantsBulkCreate(productId: $productId, variants: $variants, strategy: $strategy) {{
    productVariants {{ {_VARIANT_FIELDS} }}
    {_USER_ERRORS}
  }}
}}
"""

UPDATE_VARIANTS: Final[str] = f"""
mutation productVariantsBulkUpdate($productId: ID!, $variants: [ProductVariantsBulkInput!]!) {{
  productVariantsBulkUpdate(productId: $productId, variants: $variants) {{
    productVariants {{ {_VARIANT_FIELDS} }}
    {_USER_ERRORS}
  }}
}}
"""

GET_PRODUCT_OPTIONS: Final[str] = """
query getProductOptions($id: ID!) {
  product(id: $id) {
    id
    options { id name position optionValues { name } }
    variants(first: 100) { nodes { id } }
  }
}
"""

CREATE_OPTIONS: Final[str] = f"""
mutation productOptionsCreate(
  $productId: ID!
  $options: [OptionCreateInput!]!
  $variantStrategy: ProductOptionCreateVariantStrategy
) {{
  productOptionsCreate(
    productId: $productId, options: $options, variantStrategy: $variantStrategy
  ) {{
    product {{ id }}
    {_USER_ERRORS}
  }}
}}
"""

UPDATE_OPTION: Final[str] = f"""
mutation productOptionUpdate(
  $productId: ID!
  $option: OptionUpdateInput!
  $optionValuesToAdd: [OptionValueCreateInput!]
) {{
  productOptionUpdate(
    productId: $productId, option: $option, optionValuesToAdd: $optionValuesToAdd
  ) {{
    product {{ id }}
    {_USER_ERRORS}
  }}
}}
"""

DELETE_OPTIONS: Final[str] = f"""
mutation productOptionsDelete(
  $productId: ID!
  $options: [ID!]!
  $strategy: ProductOptionDeleteStrategy
) {{
  productOptionsDelete(productId: $productId, options: $options, strategy: $strategy) {{
    deletedOptionsIds
    {_USER_ERRORS}
  }}
}}
"""

SET_METAFIELDS: Final[str] = f"""
mutation metafieldsSet($metafields: [MetafieldsSetInput!]!) {{
  metafieldsSet(metafields: $metafields) {{
    metafields {{ id namespace key }}
    {_USER_ERRORS}
  }}
}}
"""

LIST_METAFIELD_DEFINITIONS: Final[str] = """
query listMetafieldDefinitions($first: Int!, $after: String) {
  metafieldDefinitions(first: $first, after: $after, ownerType: PRODUCT) {
    nodes { id namespace key name description type { name } }
    pageInfo { hasNextPage endCursor }
  }
}
"""

CREATE_METAFIELD_DEFINITION: Final[str] = f"""
mutation metafieldDefinitionCreate($definition: MetafieldDefinitionInput!) {{
  metafieldDefinitionCreate(definition: $definition) {{
    createdDefinition {{ id namespace key name description type {{ name }} }}
    {_USER_ERRORS}
  }}
}}
"""

LIST_LOCATIONS: Final[str] = """
query listLocations($first: Int!, $after: String) {
  locations(first: $first, after: $after) {
    nodes { id name isActive }
    pageInfo { hasNextPage endCursor }
  }
}
"""

GET_INVENTORY_ITEM: Final[str] = """
query getInventoryItem($id: ID!) {
  inventoryItem(id: $id) {
    id
    inventoryLevels(first: 250) {
      nodes {
        location { id }
        quantities(names: ["available"]) { name quantity }
      }
    }
  }
}
"""

SET_INVENTORY: Final[str] = f"""
mutation inventorySetQuantities($input: InventorySetQuantitiesInput!) {{
  inventorySetQuantities(input: $input) {{
    inventoryAdjustmentGroup {{ id }}
    {_USER_ERRORS}
  }}
}}
"""

GET_PRODUCT_MEDIA: Final[str] = f"""
query getProductMedia($id: ID!) {{
  product(id: $id) {{
    id
    media(first: 250) {{ nodes {{ {_MEDIA_FIELDS} }} }}
  }}
}}
"""

CREATE_MEDIA: Final[str] = """
mutation productCreateMedia($productId: ID!, $media: [CreateMediaInput!]!) {
  productCreateMedia(productId: $productId, media: $media) {
    media { id alt }
    mediaUserErrors { field message code }
  }
}
"""

DELETE_MEDIA: Final[str] = """
mutation productDeleteMedia($productId: ID!, $mediaIds: [ID!]!) {
  productDeleteMedia(productId: $productId, mediaIds: $mediaIds) {
    deletedMediaIds
    mediaUserErrors { field message code }
  }
}
"""

LIST_COLLECTIONS: Final[str] = """
query listCollections($first: Int!, $after: String) {
  collections(first: $first, after: $after) {
    nodes { id title }
    pageInfo { hasNextPage endCursor }
  }
}
"""

CREATE_COLLECTION: Final[str] = f"""
mutation collectionCreate($input: CollectionInput!) {{
  collectionCreate(input: $input) {{
    collection {{ id title }}
    {_USER_ERRORS}
  }}
}}
"""

GET_PRODUCT_COLLECTIONS: Final[str] = """
query getProductCollections($id: ID!) {
  product(id: $id) {
    id
    collections(first: 250) { nodes { id title } }
  }
}
"""

ADD_TO_COLLECTION: Final[str] = f"""
mutation collectionAddProducts($id: ID!, $productIds: [ID!]!) {{
  collectionAddProducts(id: $id, productIds: $productIds) {{
    collection {{ id }}
    {_USER_ERRORS}
  }}
}}
"""

REMOVE_FROM_COLLECTION: Final[str] = f"""
mutation collectionRemoveProducts($id: ID!, $productIds: [ID!]!) {{
  collectionRemoveProducts(id: $id, productIds: $productIds) {{
    job {{ id }}
    {_USER_ERRORS}
  }}
}}
"""

LIST_PUBLICATIONS: Final[str] = """
query listPublications($first: Int!, $after: String) {
  publications(first: $first, after: $after) {
    nodes { id name }
    pageInfo { hasNextPage endCursor }
  }
}
"""

PUBLISH: Final[str] = f"""
mutation publishablePublish($id: ID!, $input: [PublicationInput!]!) {{
  publishablePublish(id: $id, input: $input) {{
    {_USER_ERRORS}
  }}
}}
"""
