"""Application service: Add Attribute Combination use case."""

from __future__ import annotations

from collections.abc import Callable

from storefront.domain.exceptions import EntityNotFoundError, ValidationError
from storefront.domain.model.catalog import AttributeCombination
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.unit_of_work import UnitOfWork


class AddCombinationHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(
        self,
        item_id: str,
        attributes: dict[str, str],
        available: int = 0,
        price: str | None = None,
        combination_id: str | None = None,
    ) -> AttributeCombination:
        """Add a variant with its own availability counter to an item."""
        with self._uow_factory() as uow:
            item = uow.catalog.get_item(item_id)
            if item is None:
                raise EntityNotFoundError(f"Item with ID '{item_id}' not found")

            siblings = uow.catalog.list_combinations(item_id)
            if any(c.attributes == attributes for c in siblings):
                raise ValidationError(
                    f"Item '{item.name}' already has a combination {attributes}"
                )

            if combination_id is None:
                combination_id = f"{item_id}-{len(siblings) + 1}"
            if uow.catalog.get_combination(combination_id) is not None:
                raise ValidationError(f"Combination ID '{combination_id}' already exists")

            combination = AttributeCombination(
                id=combination_id,
                item_id=item_id,
                attributes=dict(attributes),
                available_quantity=available,
                unit_price=Money.of(price) if price is not None else None,
            )
            uow.catalog.save_combination(combination)
            uow.commit()
        return combination
