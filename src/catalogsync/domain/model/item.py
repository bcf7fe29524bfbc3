"""The catalog item aggregate and its lifecycle rules."""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import UTC, datetime
from typing import TYPE_CHECKING, ClassVar, Final

from catalogsync.domain.errors import IllegalTransitionError
from catalogsync.domain.model.enums import ItemStatus

if TYPE_CHECKING:
    from decimal import Decimal

MAX_IMAGE_PATHS: Final[int] = 9
SOLD_STATUS_TEXT: Final[str] = "SOLD"


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(eq=False, kw_only=True)
class Item:
    """One watch (or jewelry piece) as described by the feed.

    ``tag_number`` is the natural key shared by the feed, the store and the
    platform variant SKU. The bookkeeping fields (``platform_id``, ``status``,
    timestamps and ``system_messages``) are owned by the pipelines; everything
    else is copied from the feed.
    """

    tag_number: str

    description_short: str | None = None
    category: str | None = None
    designer: str | None = None
    style: str | None = None
    metal_type: str | None = None
    notes: str | None = None
    status_text: str | None = None
    condition: str | None = None
    dial: str | None = None
    diameter: str | None = None
    movement: str | None = None
    strap: str | None = None
    case: str | None = None
    year: str | None = None
    box_papers: str | None = None
    manufacturer_reference_number: str | None = None
    model: str | None = None
    price_retail: Decimal | None = None
    price_sale: Decimal | None = None
    price_keystone: Decimal | None = None
    image_paths: tuple[str | None, ...] = ()

    platform_id: str | None = None
    status: ItemStatus = ItemStatus.NEW_WAITING_PUBLISH
    last_updated: datetime | None = None
    published_at: datetime | None = None
    system_messages: str | None = None

    BOOKKEEPING_FIELDS: ClassVar[frozenset[str]] = frozenset(
        {"tag_number", "platform_id", "status", "last_updated", "published_at", "system_messages"}
    )
    # price_retail and price_sale never reach the storefront
    SYNC_FIELDS: ClassVar[tuple[str, ...]] = (
        "designer",
        "category",
        "description_short",
        "image_paths",
        "metal_type",
        "notes",
        "price_keystone",
        "status_text",
        "style",
        "box_papers",
        "condition",
        "dial",
        "diameter",
        "manufacturer_reference_number",
        "model",
        "movement",
        "strap",
        "year",
    )

    def __post_init__(self) -> None:
        if len(self.image_paths) > MAX_IMAGE_PATHS:
            raise ValueError(
                f"Item {self.tag_number} has {len(self.image_paths)} image paths; "
                f"at most {MAX_IMAGE_PATHS} are supported"
            )

    @classmethod
    def feed_field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls) if f.name not in cls.BOOKKEEPING_FIELDS)

    @property
    def is_sold(self) -> bool:
        if self.status_text is None:
            return False
        return self.status_text.strip().upper() == SOLD_STATUS_TEXT

    @property
    def available_quantity(self) -> int:
        return 0 if self.is_sold else 1

    @property
    def image_count(self) -> int:
        return sum(1 for path in self.image_paths if path)

    def equals_for_sync(self, other: Item) -> bool:
        """Compare only the fields that influence the storefront listing."""
        return all(
            _normalized(getattr(self, name)) == _normalized(getattr(other, name))
            for name in self.SYNC_FIELDS
        )

    def sync_differences(self, other: Item) -> list[str]:
        return [
            name
            for name in self.SYNC_FIELDS
            if _normalized(getattr(self, name)) != _normalized(getattr(other, name))
        ]

    def copy_from(self, other: Item) -> None:
        """Overwrite every feed-derived attribute with ``other``'s values."""
        for name in self.feed_field_names():
            setattr(self, name, getattr(other, name))

    def transition_to(self, target: ItemStatus, *, at: datetime | None = None) -> None:
        if not self.status.can_transition_to(target):
            raise IllegalTransitionError(
                f"Item {self.tag_number}: {self.status} -> {target} is not allowed"
            )
        self.status = target
        self.last_updated = at or utcnow()

    def mark_published(self, platform_id: str, *, at: datetime | None = None) -> None:
        when = at or utcnow()
        self.transition_to(ItemStatus.PUBLISHED, at=when)
        self.platform_id = platform_id
        self.published_at = when
        self.system_messages = None

    def mark_updated(self, *, at: datetime | None = None) -> None:
        self.transition_to(ItemStatus.UPDATED, at=at)
        self.system_messages = None

    def mark_failed(self, target: ItemStatus, message: str, *, at: datetime | None = None) -> None:
        if not target.is_failed:
            raise ValueError(f"{target} is not a failure state")
        self.transition_to(target, at=at)
        self.system_messages = message

    def __repr__(self) -> str:
        return (
            f"Item(tag_number={self.tag_number!r}, status={self.status!s}, "
            f"platform_id={self.platform_id!r})"
        )


def _normalized(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    if isinstance(value, tuple):
        # trailing empty image slots are not a difference
        items = [_normalized(entry) for entry in value]
        while items and items[-1] is None:
            items.pop()
        return tuple(items)
    return value
