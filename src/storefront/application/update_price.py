"""Application service: Update Price use case."""

from __future__ import annotations

from collections.abc import Callable

from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.unit_of_work import UnitOfWork


class UpdatePriceHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(self, item_id: str, new_price: str) -> None:
        """Update a catalog item's price.

        This does NOT affect any existing orders: they captured a
        price snapshot at commit time.
        """
        with self._uow_factory() as uow:
            item = uow.catalog.get_item(item_id)
            if item is None:
                raise EntityNotFoundError(f"Item with ID '{item_id}' not found")

            item.update_price(Money.of(new_price))
            uow.catalog.save_item(item)
            uow.commit()
