"""Application service: Set Availability use case.

Administrative override of a counter, e.g. after a stock count.  Checkout
never goes through here; it only decrements through the ledger.
"""

from __future__ import annotations

from collections.abc import Callable

from storefront.domain.exceptions import EntityNotFoundError, ValidationError
from storefront.domain.model.catalog import ItemRef
from storefront.domain.repository.unit_of_work import UnitOfWork


class SetAvailabilityHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(self, ref: ItemRef, quantity: int) -> None:
        """Set the available quantity of an item or a combination."""
        if quantity < 0:
            raise ValidationError("Availability cannot be negative")

        with self._uow_factory() as uow:
            if ref.is_combination:
                combination = uow.catalog.get_combination(ref.id)
                if combination is None:
                    raise EntityNotFoundError(f"Combination with ID '{ref.id}' not found")
                combination.available_quantity = quantity
                uow.catalog.save_combination(combination)
            else:
                item = uow.catalog.get_item(ref.id)
                if item is None:
                    raise EntityNotFoundError(f"Item with ID '{ref.id}' not found")
                item.available_quantity = quantity
                uow.catalog.save_item(item)
            uow.commit()
