"""Application service: Add Catalog Item use case.

Stand-in for the catalog/admin surface, which owns item metadata.
"""

from __future__ import annotations

from collections.abc import Callable

from storefront.domain.exceptions import ValidationError
from storefront.domain.model.catalog import CatalogItem
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.unit_of_work import UnitOfWork


class AddCatalogItemHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(
        self,
        name: str,
        price: str,
        available: int = 0,
        low_availability_threshold: int | None = None,
        item_id: str | None = None,
    ) -> CatalogItem:
        """Add a new item to the catalog."""
        if not name or not name.strip():
            raise ValidationError("Item name is required")
        unit_price = Money.of(price)

        with self._uow_factory() as uow:
            existing = uow.catalog.list_items()
            if any(item.name.lower() == name.strip().lower() for item in existing):
                raise ValidationError(f"Item '{name}' already exists")

            if item_id is None:
                # Auto-assign ID based on existing numeric IDs
                numeric = [int(item.id) for item in existing if item.id.isdigit()]
                item_id = str(max(numeric) + 1) if numeric else "1"
            elif uow.catalog.get_item(item_id) is not None:
                raise ValidationError(f"Item ID '{item_id}' already exists")

            item = CatalogItem(
                id=item_id,
                name=name.strip(),
                unit_price=unit_price,
                available_quantity=available,
                low_availability_threshold=low_availability_threshold,
            )
            uow.catalog.save_item(item)
            uow.commit()
        return item
