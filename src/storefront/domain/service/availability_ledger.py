"""Domain service: Availability Ledger.

Reserves stock against the per-item and per-combination counters.  The
ledger never reads a counter and then writes it back: every reservation
is a single conditional decrement handed to the repository, evaluated
inside the caller's unit of work.  If anything later in that unit of
work fails, the transaction boundary undoes the decrement.

Item counters and combination counters are separate ledgers.  Reserving
a combination never touches its parent item's counter.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from storefront.domain.exceptions import InsufficientAvailability
from storefront.domain.model.catalog import (
    DEFAULT_LOW_AVAILABILITY_THRESHOLD,
    CatalogItem,
    ItemRef,
)
from storefront.domain.model.value_objects import Quantity
from storefront.domain.repository.catalog_repository import CatalogRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Reserved:
    item_ref: ItemRef
    quantity: int
    remaining: int


@dataclass(frozen=True)
class LowAvailability:
    item_ref: ItemRef
    name: str
    available: int
    threshold: int


class AvailabilityLedger:

    def __init__(
        self,
        catalog_repo: CatalogRepository,
        default_threshold: int = DEFAULT_LOW_AVAILABILITY_THRESHOLD,
    ) -> None:
        self._catalog_repo = catalog_repo
        self._default_threshold = default_threshold

    def reserve(self, ref: ItemRef, quantity: int) -> Reserved:
        """Take ``quantity`` units from the counter behind ``ref``.

        Raises InsufficientAvailability when the counter is too low or the
        record is missing or inactive.
        """
        qty = Quantity(quantity).value
        remaining = self._catalog_repo.decrement_if_available(ref, qty)
        if remaining is None:
            raise InsufficientAvailability(ref, qty, self.available(ref))

        threshold = self._threshold_for(ref)
        if threshold is not None and remaining <= threshold:
            logger.warning(
                "availability_low",
                item_ref=str(ref),
                remaining=remaining,
                threshold=threshold,
            )
        return Reserved(item_ref=ref, quantity=qty, remaining=remaining)

    def reserve_all(self, requests: list[tuple[ItemRef, int]]) -> list[Reserved]:
        """Reserve every request in order; the first failure propagates.

        Earlier decrements are not undone here.  The enclosing unit of
        work discards them when the exception leaves its ``with`` block.
        """
        return [self.reserve(ref, qty) for ref, qty in requests]

    def restock(self, ref: ItemRef, quantity: int) -> int:
        """Return units to the same counter they were reserved from."""
        qty = Quantity(quantity).value
        remaining = self._catalog_repo.increment(ref, qty)
        logger.info("order_restocked", item_ref=str(ref), quantity=qty, available=remaining)
        return remaining

    def available(self, ref: ItemRef) -> int:
        """Units currently sellable behind ``ref`` (0 if missing or inactive)."""
        if ref.is_combination:
            combination = self._catalog_repo.get_combination(ref.id)
            if combination is None or not combination.active:
                return 0
            # A combination of a withdrawn item is not sellable either.
            parent = self._catalog_repo.get_item(combination.item_id)
            if parent is None or not parent.active:
                return 0
            return combination.available_quantity

        item = self._catalog_repo.get_item(ref.id)
        if item is None or not item.active:
            return 0
        return item.available_quantity

    def low_availability(self) -> list[LowAvailability]:
        """Active items and combinations at or below their threshold."""
        report: list[LowAvailability] = []
        for item in self._catalog_repo.list_items():
            if not item.active:
                continue
            threshold = item.effective_threshold(self._default_threshold)
            if item.available_quantity <= threshold:
                report.append(
                    LowAvailability(item.ref, item.name, item.available_quantity, threshold)
                )
            for combination in self._catalog_repo.list_combinations(item.id):
                if combination.active and combination.available_quantity <= threshold:
                    report.append(
                        LowAvailability(
                            combination.ref,
                            f"{item.name} ({combination.label()})",
                            combination.available_quantity,
                            threshold,
                        )
                    )
        return sorted(report, key=lambda entry: entry.available)

    # --- Internal helpers -----------------------------------------------------

    def _threshold_for(self, ref: ItemRef) -> int | None:
        item: CatalogItem | None
        if ref.is_combination:
            combination = self._catalog_repo.get_combination(ref.id)
            item = self._catalog_repo.get_item(combination.item_id) if combination else None
        else:
            item = self._catalog_repo.get_item(ref.id)
        if item is None:
            return None
        return item.effective_threshold(self._default_threshold)
