"""Reconcile a freshly built entry with the platform's copy of it.

The local entry is always the desired state. The platform's copy contributes
only what the local side cannot know: identifiers, and metafields written by
out-of-band backfills.

Comparisons only use what survives a round trip through the platform. Images
are re-hosted under CDN urls, so they are matched by slot position. An options
update never removes values, so a superseded value left on the platform is not
a difference. Metafields are upserted, and keys the local side does not write
are kept as they are.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from catalogsync.domain.sync.inventory import merge_levels

if TYPE_CHECKING:
    from catalogsync.domain.model import (
        CatalogEntry,
        Metafield,
        ProductImage,
        ProductOption,
        Variant,
    )

log = getLogger(__name__)


@dataclass(slots=True)
class CategoryReport:
    matched: int = 0
    changed: int = 0
    added: int = 0
    dropped: int = 0
    preserved: int = 0

    @property
    def has_changes(self) -> bool:
        return bool(self.changed or self.added or self.dropped)


@dataclass(slots=True)
class MergeReport:
    basic: CategoryReport = field(default_factory=CategoryReport)
    variants: CategoryReport = field(default_factory=CategoryReport)
    options: CategoryReport = field(default_factory=CategoryReport)
    images: CategoryReport = field(default_factory=CategoryReport)
    metafields: CategoryReport = field(default_factory=CategoryReport)
    seo_changed: bool = False

    @property
    def has_changes(self) -> bool:
        return (
            self.basic.has_changes
            or self.variants.has_changes
            or self.options.has_changes
            or self.images.has_changes
            or self.metafields.has_changes
            or self.seo_changed
        )

    @property
    def basic_changed(self) -> bool:
        """Fields sent by the basic update: entry attributes and variant prices."""
        return self.basic.has_changes or self.variants.has_changes

    @property
    def metadata_changed(self) -> bool:
        return self.metafields.has_changes or self.seo_changed

    def summary(self) -> str:
        parts = []
        for name in ("basic", "variants", "options", "images", "metafields"):
            report: CategoryReport = getattr(self, name)
            parts.append(
                f"{name}=matched:{report.matched}/changed:{report.changed}"
                f"/added:{report.added}/dropped:{report.dropped}"
            )
        parts.append(f"seo_changed={self.seo_changed}")
        return ", ".join(parts)


def merge_entry(remote: CatalogEntry, local: CatalogEntry) -> MergeReport:
    """Copy platform ids from ``remote`` onto ``local`` (in place) and report differences."""

    report = MergeReport()
    local.id = remote.id

    if _basic_fields(remote) != _basic_fields(local):
        report.basic.changed = 1
    else:
        report.basic.matched = 1

    report.seo_changed = _clean(remote.seo_title) != _clean(local.seo_title) or _clean(
        remote.seo_description
    ) != _clean(local.seo_description)

    reselect = _selected_values(remote) != _selected_values(local)
    local.variants = _merge_variants(remote.variants, local.variants, report.variants)
    local.options = _merge_options(remote.options, local.options, report.options)
    if reselect and not report.options.has_changes:
        # variants are pointed at option values by the options update
        report.options.changed += 1
    local.images = _merge_images(remote.images, local.images, report.images)
    local.metafields = _merge_metafields(remote.metafields, local.metafields, report.metafields)

    log.debug("Merged entry %s: %s", local.id, report.summary())
    return report


def _merge_variants(
    remote: list[Variant], local: list[Variant], report: CategoryReport
) -> list[Variant]:
    remote_by_sku = {variant.sku: variant for variant in remote}
    for variant in local:
        match = remote_by_sku.pop(variant.sku, None)
        if match is None:
            report.added += 1
            continue
        report.matched += 1
        variant.id = match.id
        variant.inventory_item_id = match.inventory_item_id
        if match.inventory_levels is not None and variant.inventory_levels is not None:
            merged = merge_levels(match.inventory_levels, variant.inventory_levels)
            variant.inventory_levels = merged.levels
        if match.price != variant.price or _clean_values(match.option_values) != _clean_values(
            variant.option_values
        ):
            report.changed += 1
    report.dropped += len(remote_by_sku)
    return local


def _merge_options(
    remote: list[ProductOption], local: list[ProductOption], report: CategoryReport
) -> list[ProductOption]:
    remote_by_name = {option.name.strip(): option for option in remote}
    for option in local:
        match = remote_by_name.pop(option.name.strip(), None)
        if match is None:
            report.added += 1
            continue
        report.matched += 1
        option.id = match.id
        known = set(_clean_values(match.values))
        if match.position != option.position or not set(_clean_values(option.values)) <= known:
            report.changed += 1
    report.dropped += len(remote_by_name)
    return local


def _merge_images(
    remote: list[ProductImage], local: list[ProductImage], report: CategoryReport
) -> list[ProductImage]:
    remote_by_position = {image.position: image for image in remote}
    for image in local:
        match = remote_by_position.pop(image.position, None)
        if match is None:
            report.added += 1
            continue
        report.matched += 1
        image.id = match.id
        if _clean(match.alt_text) != _clean(image.alt_text):
            report.changed += 1
    report.dropped += len(remote_by_position)
    return local


def _merge_metafields(
    remote: list[Metafield], local: list[Metafield], report: CategoryReport
) -> list[Metafield]:
    remote_by_key = {metafield.natural_key: metafield for metafield in remote}
    for metafield in local:
        match = remote_by_key.pop(metafield.natural_key, None)
        if match is None:
            report.added += 1
            continue
        report.matched += 1
        metafield.id = match.id
        if match.value != metafield.value or match.type != metafield.type:
            report.changed += 1

    merged = list(local)
    for leftover in remote_by_key.values():
        report.preserved += 1
        merged.append(leftover)
    return merged


def _basic_fields(entry: CatalogEntry) -> tuple[object, ...]:
    return (
        _clean(entry.title),
        _clean(entry.body_html),
        _clean(entry.vendor),
        _clean(entry.product_type),
        frozenset(tag.strip() for tag in entry.tags if tag.strip()),
    )


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _clean_values(values: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(value.strip() for value in values)


def _selected_values(entry: CatalogEntry) -> dict[str, tuple[str, ...]]:
    return {variant.sku: _clean_values(variant.option_values) for variant in entry.variants}
