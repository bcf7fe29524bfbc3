"""Distribution of the single sellable unit across stock locations."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from catalogsync.domain.errors import InvalidInventoryError
from catalogsync.domain.model import InventoryLevel

if TYPE_CHECKING:
    from collections.abc import Sequence

    from catalogsync.domain.model import Item, Location

log = getLogger(__name__)


@dataclass(slots=True)
class InventoryMergeResult:
    valid: bool
    levels: list[InventoryLevel] = field(default_factory=list)
    reason: str | None = None
    matched: int = 0


def compute_levels(item: Item, locations: Sequence[Location]) -> list[InventoryLevel]:
    """Place the whole quantity on the first location and zero everywhere else."""

    quantity = item.available_quantity
    return [
        InventoryLevel(location_id=location.id, available=quantity if index == 0 else 0)
        for index, location in enumerate(locations)
    ]


def merge_levels(
    existing: Sequence[InventoryLevel] | None,
    fresh: Sequence[InventoryLevel] | None,
) -> InventoryMergeResult:
    """Copy platform inventory-item ids onto freshly computed levels by location.

    ``None`` on either side is reported as an invalid result rather than treated
    as "nothing to merge"; an unmerged level has no inventory-item id and the
    platform rejects it.
    """

    if existing is None:
        return InventoryMergeResult(valid=False, reason="existing inventory levels are missing")
    if fresh is None:
        return InventoryMergeResult(valid=False, reason="computed inventory levels are missing")

    existing_by_location = {level.location_id: level for level in existing}
    merged: list[InventoryLevel] = []
    matched = 0
    for level in fresh:
        remote = existing_by_location.get(level.location_id)
        inventory_item_id = level.inventory_item_id
        if remote is not None and remote.inventory_item_id:
            inventory_item_id = remote.inventory_item_id
            matched += 1
        merged.append(
            InventoryLevel(
                location_id=level.location_id,
                available=level.available,
                inventory_item_id=inventory_item_id,
            )
        )
    return InventoryMergeResult(valid=True, levels=merged, matched=matched)


def validate_levels(levels: Sequence[InventoryLevel]) -> None:
    if not levels:
        raise InvalidInventoryError("No inventory levels to apply")
    problems: list[str] = []
    for level in levels:
        if not level.location_id:
            problems.append("level without location id")
        if not level.inventory_item_id:
            problems.append(f"location {level.location_id or '?'} has no inventory item id")
        if level.available is None:
            problems.append(f"location {level.location_id or '?'} has no quantity")
        elif level.available < 0:
            problems.append(f"location {level.location_id} has negative quantity")
    total = total_available(levels)
    if total not in (0, 1):
        problems.append(f"total available is {total}, expected 0 or 1")
    if problems:
        raise InvalidInventoryError("Invalid inventory levels: " + "; ".join(problems))


def total_available(levels: Sequence[InventoryLevel]) -> int:
    return sum(level.available or 0 for level in levels)


def prepare_levels(
    item: Item,
    locations: Sequence[Location],
    existing: Sequence[InventoryLevel] | None,
    *,
    inventory_item_id: str | None = None,
) -> list[InventoryLevel]:
    """Compute, merge and validate the levels to send for ``item``.

    ``inventory_item_id`` fills locations the platform has not stocked yet (a
    variant has one inventory item shared by all of its locations).
    """

    fresh = compute_levels(item, locations)
    if inventory_item_id:
        for level in fresh:
            level.inventory_item_id = inventory_item_id
    result = merge_levels(existing, fresh)
    if not result.valid:
        raise InvalidInventoryError(f"Item {item.tag_number}: {result.reason}")
    log.debug(
        "Item %s inventory: %d location(s), %d matched remotely",
        item.tag_number,
        len(result.levels),
        result.matched,
    )
    validate_levels(result.levels)
    return result.levels
