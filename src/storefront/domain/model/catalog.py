"""Catalog records read by the checkout core.

CatalogItem and AttributeCombination are owned by the catalog/admin
surface.  The core reads them during a commit and decrements their
availability counters; it never edits their metadata.

The two counters are independent ledgers: a combination's availability
says nothing about its parent item's availability and vice versa.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from storefront.domain.exceptions import ValidationError
from storefront.domain.model.value_objects import Money

DEFAULT_LOW_AVAILABILITY_THRESHOLD = 10


class RefKind(Enum):
    ITEM = "item"
    COMBINATION = "combination"


@dataclass(frozen=True)
class ItemRef:
    """Points at exactly one availability ledger: an item or a combination."""

    kind: RefKind
    id: str

    def __post_init__(self) -> None:
        if not self.id or not str(self.id).strip():
            raise ValidationError("Item reference id is required")

    @staticmethod
    def item(item_id: str) -> ItemRef:
        return ItemRef(RefKind.ITEM, item_id)

    @staticmethod
    def combination(combination_id: str) -> ItemRef:
        return ItemRef(RefKind.COMBINATION, combination_id)

    @property
    def is_combination(self) -> bool:
        return self.kind is RefKind.COMBINATION

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.id}"


def _check_price(price: Money, label: str) -> None:
    if price.amount <= 0:
        raise ValidationError(f"{label} price must be greater than zero")
    if not price.is_whole_cents:
        raise ValidationError(
            f"{label} price cannot have fractions of a cent, got {price.amount}"
        )


def _check_counter(available_quantity: int) -> None:
    if isinstance(available_quantity, bool) or not isinstance(available_quantity, int):
        raise ValidationError("Availability must be an integer")
    if available_quantity < 0:
        raise ValidationError("Availability cannot be negative")


@dataclass
class CatalogItem:
    """A sellable entry with its own price and availability counter."""

    id: str
    name: str
    unit_price: Money
    available_quantity: int = 0
    low_availability_threshold: int | None = None
    active: bool = True

    def __post_init__(self) -> None:
        _check_counter(self.available_quantity)
        _check_price(self.unit_price, "Item")

    @property
    def ref(self) -> ItemRef:
        return ItemRef.item(self.id)

    def effective_threshold(self, default: int = DEFAULT_LOW_AVAILABILITY_THRESHOLD) -> int:
        if self.low_availability_threshold is None:
            return default
        return self.low_availability_threshold

    def update_price(self, new_price: Money) -> None:
        """Change the item price.

        Existing orders are unaffected because they captured a price
        snapshot at commit time.
        """
        _check_price(new_price, "Item")
        self.unit_price = new_price


@dataclass
class AttributeCombination:
    """A specific variant (e.g. color+size) of a CatalogItem.

    ``unit_price`` is optional; when it is None the parent item's price
    applies.  That is a pricing rule only, stock is never shared.
    """

    id: str
    item_id: str
    attributes: dict[str, str] = field(default_factory=dict)
    available_quantity: int = 0
    unit_price: Money | None = None
    active: bool = True

    def __post_init__(self) -> None:
        _check_counter(self.available_quantity)
        if not self.attributes:
            raise ValidationError("A combination needs at least one attribute value")
        if self.unit_price is not None:
            _check_price(self.unit_price, "Combination")

    @property
    def ref(self) -> ItemRef:
        return ItemRef.combination(self.id)

    def price_for(self, parent: CatalogItem) -> Money:
        if parent.id != self.item_id:
            raise ValidationError(
                f"Combination {self.id} does not belong to item {parent.id}"
            )
        return self.unit_price if self.unit_price is not None else parent.unit_price

    def label(self) -> str:
        return ", ".join(f"{k}={v}" for k, v in sorted(self.attributes.items()))
