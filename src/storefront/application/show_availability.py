"""Application service: Show Availability use case (query).

Display reads are not isolated from concurrent checkouts; the numbers
may be stale by the time a customer commits.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal

from storefront.domain.model.catalog import DEFAULT_LOW_AVAILABILITY_THRESHOLD
from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.domain.service.availability_ledger import AvailabilityLedger, LowAvailability


@dataclass(frozen=True)
class AvailabilityLineDTO:
    item_ref: str
    name: str
    unit_price: Decimal
    available: int
    active: bool


class ShowAvailabilityHandler:

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        low_availability_threshold: int = DEFAULT_LOW_AVAILABILITY_THRESHOLD,
    ) -> None:
        self._uow_factory = uow_factory
        self._threshold = low_availability_threshold

    def handle(self) -> list[AvailabilityLineDTO]:
        lines: list[AvailabilityLineDTO] = []
        with self._uow_factory() as uow:
            for item in uow.catalog.list_items():
                lines.append(
                    AvailabilityLineDTO(
                        item_ref=str(item.ref),
                        name=item.name,
                        unit_price=item.unit_price.amount,
                        available=item.available_quantity,
                        active=item.active,
                    )
                )
                for combination in uow.catalog.list_combinations(item.id):
                    lines.append(
                        AvailabilityLineDTO(
                            item_ref=str(combination.ref),
                            name=f"{item.name} ({combination.label()})",
                            unit_price=combination.price_for(item).amount,
                            available=combination.available_quantity,
                            active=combination.active and item.active,
                        )
                    )
        return lines

    def low(self) -> list[LowAvailability]:
        """Active items and combinations at or below their alert threshold."""
        with self._uow_factory() as uow:
            return AvailabilityLedger(uow.catalog, self._threshold).low_availability()
