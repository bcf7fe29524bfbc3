"""Marketplace metafield definitions and the process-wide cache that ensures them."""

from __future__ import annotations

import threading
from enum import Enum
from logging import getLogger
from typing import TYPE_CHECKING, Final

from catalogsync.domain.errors import RemoteCatalogError
from catalogsync.domain.model import MetafieldDefinition

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from catalogsync.domain.model import Item
    from catalogsync.domain.ports import RemoteCatalogClient

log = getLogger(__name__)

MARKETPLACE_NAMESPACE: Final[str] = "ebay"
TEXT_FIELD: Final[str] = "single_line_text_field"


class MarketplaceField(Enum):
    """Item attributes mirrored into the marketplace metafield namespace."""

    BRAND = ("brand", "Brand", "Watch brand/manufacturer", lambda item: item.designer)
    MODEL = ("model", "Model", "Watch model", lambda item: item.model)
    REFERENCE_NUMBER = (
        "reference_number",
        "Reference Number",
        "Manufacturer reference number",
        lambda item: item.manufacturer_reference_number,
    )
    YEAR = ("year", "Year", "Year of manufacture", lambda item: item.year)
    CASE_MATERIAL = (
        "case_material", "Case Material", "Case material", lambda item: item.metal_type
    )
    MOVEMENT = ("movement", "Movement", "Movement type", lambda item: item.movement)
    DIAL = ("dial", "Dial", "Dial information", lambda item: item.dial)
    STRAP = ("strap", "Strap/Bracelet", "Strap or bracelet information", lambda item: item.strap)
    CONDITION = ("condition", "Condition", "Watch condition", lambda item: item.condition)
    DIAMETER = ("diameter", "Case Diameter", "Case diameter", lambda item: item.diameter)
    BOX_PAPERS = (
        "box_papers",
        "Box & Papers",
        "Box and papers information",
        lambda item: item.box_papers,
    )
    CATEGORY = ("category", "Category", "Watch category", lambda item: item.category)
    STYLE = ("style", "Style", "Watch style", lambda item: item.style)

    def __init__(
        self, key: str, label: str, description: str, accessor: Callable[[Item], str | None]
    ) -> None:
        self.key = key
        self.label = label
        self.description = description
        self.accessor = accessor

    def value_for(self, item: Item) -> str | None:
        value = self.accessor(item)
        if value is None or not value.strip():
            return None
        return value.strip()

    @property
    def definition(self) -> MetafieldDefinition:
        return MetafieldDefinition(
            namespace=MARKETPLACE_NAMESPACE,
            key=self.key,
            name=self.label,
            type=TEXT_FIELD,
            description=f"{self.description} for marketplace listings",
        )


def marketplace_definitions() -> list[MetafieldDefinition]:
    return [field.definition for field in MarketplaceField]


class MetafieldDefinitionCache:
    """Definitions known to the platform, ensured once per process.

    The first :meth:`ensure` reads the platform's definitions and creates the
    missing ones under the lock. Creation failures are logged; a definition
    that could not be created stays unknown, and metafields for it are left
    out of built entries.
    """

    def __init__(
        self,
        client: RemoteCatalogClient,
        *,
        required: Iterable[MetafieldDefinition] | None = None,
    ) -> None:
        self._client = client
        self._required = tuple(required if required is not None else marketplace_definitions())
        self._lock = threading.Lock()
        self._known: frozenset[tuple[str, str]] | None = None

    @property
    def is_loaded(self) -> bool:
        return self._known is not None

    def invalidate(self) -> None:
        with self._lock:
            self._known = None

    def ensure(self) -> frozenset[tuple[str, str]]:
        known = self._known
        if known is not None:
            return known
        with self._lock:
            if self._known is None:
                self._known = self._populate()
            return self._known

    def is_defined(self, namespace: str, key: str) -> bool:
        return (namespace, key) in self.ensure()

    def _populate(self) -> frozenset[tuple[str, str]]:
        known = {definition.natural_key for definition in self._client.get_metafield_definitions()}
        created = 0
        for definition in self._required:
            if definition.natural_key in known:
                continue
            try:
                self._client.create_metafield_definition(definition)
            except RemoteCatalogError as exc:
                log.warning(
                    "Could not create metafield definition %s.%s: %s",
                    definition.namespace,
                    definition.key,
                    exc,
                )
                continue
            known.add(definition.natural_key)
            created += 1
        if created:
            log.info("Created %d metafield definition(s)", created)
        return frozenset(known)
