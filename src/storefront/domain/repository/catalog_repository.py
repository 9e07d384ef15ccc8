"""Abstract repository for catalog records and their availability counters.

Defined in the domain layer so the domain never depends on
infrastructure.  Concrete implementations live in the infrastructure
layer; they must run every method inside the caller's unit of work.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.model.catalog import AttributeCombination, CatalogItem, ItemRef


class CatalogRepository(ABC):

    @abstractmethod
    def get_item(self, item_id: str) -> CatalogItem | None:
        """Return a catalog item by its ID, or None if not found."""

    @abstractmethod
    def get_combination(self, combination_id: str) -> AttributeCombination | None:
        """Return an attribute combination by its ID, or None if not found."""

    @abstractmethod
    def list_items(self) -> list[CatalogItem]:
        """Return every catalog item."""

    @abstractmethod
    def list_combinations(self, item_id: str | None = None) -> list[AttributeCombination]:
        """Return every combination, optionally only those of one item."""

    @abstractmethod
    def save_item(self, item: CatalogItem) -> None:
        """Persist a new or updated catalog item."""

    @abstractmethod
    def save_combination(self, combination: AttributeCombination) -> None:
        """Persist a new or updated attribute combination."""

    @abstractmethod
    def decrement_if_available(self, ref: ItemRef, quantity: int) -> int | None:
        """Atomically subtract ``quantity`` from the counter behind ``ref``.

        The check and the decrement must be one conditional operation.
        Returns the remaining count, or None when the record is missing,
        inactive or holds fewer than ``quantity`` units (nothing changes).
        """

    @abstractmethod
    def increment(self, ref: ItemRef, quantity: int) -> int:
        """Add ``quantity`` back to the counter behind ``ref``."""
