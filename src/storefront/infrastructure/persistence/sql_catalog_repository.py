"""SQLAlchemy implementation of CatalogRepository.

Reads use ``populate_existing`` so a unit of work always sees the
counters as they are in the database, not as they were first loaded.
"""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.model.catalog import AttributeCombination, CatalogItem, ItemRef
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.catalog_repository import CatalogRepository
from storefront.infrastructure.persistence.tables import AttributeCombinationRow, CatalogItemRow


class SqlCatalogRepository(CatalogRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    # --- CatalogRepository interface ------------------------------------------

    def get_item(self, item_id: str) -> CatalogItem | None:
        row = self._session.execute(
            select(CatalogItemRow)
            .where(CatalogItemRow.id == item_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return self._item_to_domain(row) if row is not None else None

    def get_combination(self, combination_id: str) -> AttributeCombination | None:
        found = self._session.execute(
            self._combinations_with_currency()
            .where(AttributeCombinationRow.id == combination_id)
            .execution_options(populate_existing=True)
        ).one_or_none()
        return self._combination_to_domain(*found) if found is not None else None

    def list_items(self) -> list[CatalogItem]:
        rows = self._session.execute(
            select(CatalogItemRow)
            .order_by(CatalogItemRow.id)
            .execution_options(populate_existing=True)
        ).scalars()
        return [self._item_to_domain(row) for row in rows]

    def list_combinations(self, item_id: str | None = None) -> list[AttributeCombination]:
        stmt = self._combinations_with_currency().order_by(AttributeCombinationRow.id)
        if item_id is not None:
            stmt = stmt.where(AttributeCombinationRow.item_id == item_id)
        rows = self._session.execute(stmt.execution_options(populate_existing=True)).all()
        return [self._combination_to_domain(row, currency) for row, currency in rows]

    def save_item(self, item: CatalogItem) -> None:
        self._session.merge(
            CatalogItemRow(
                id=item.id,
                name=item.name,
                unit_price=item.unit_price.amount,
                currency=item.unit_price.currency,
                available_quantity=item.available_quantity,
                low_availability_threshold=item.low_availability_threshold,
                active=item.active,
            )
        )
        self._session.flush()

    def save_combination(self, combination: AttributeCombination) -> None:
        self._session.merge(
            AttributeCombinationRow(
                id=combination.id,
                item_id=combination.item_id,
                attributes=dict(combination.attributes),
                available_quantity=combination.available_quantity,
                unit_price=combination.unit_price.amount if combination.unit_price else None,
                active=combination.active,
            )
        )
        self._session.flush()

    def decrement_if_available(self, ref: ItemRef, quantity: int) -> int | None:
        table = AttributeCombinationRow if ref.is_combination else CatalogItemRow
        stmt = (
            update(table)
            .where(
                table.id == ref.id,
                table.active.is_(True),
                table.available_quantity >= quantity,
            )
            .values(available_quantity=table.available_quantity - quantity)
        )
        if ref.is_combination:
            # Sellable only while the parent item is active; stock stays separate.
            active_items = select(CatalogItemRow.id).where(CatalogItemRow.active.is_(True))
            stmt = stmt.where(AttributeCombinationRow.item_id.in_(active_items))

        result = self._session.execute(stmt.execution_options(synchronize_session=False))
        if result.rowcount != 1:
            return None
        return self._current_count(ref)

    def increment(self, ref: ItemRef, quantity: int) -> int:
        table = AttributeCombinationRow if ref.is_combination else CatalogItemRow
        stmt = (
            update(table)
            .where(table.id == ref.id)
            .values(available_quantity=table.available_quantity + quantity)
        )
        result = self._session.execute(stmt.execution_options(synchronize_session=False))
        if result.rowcount != 1:
            raise EntityNotFoundError(f"No availability record for {ref}")
        return self._current_count(ref)

    # --- Serialization --------------------------------------------------------

    def _current_count(self, ref: ItemRef) -> int:
        table = AttributeCombinationRow if ref.is_combination else CatalogItemRow
        return self._session.execute(
            select(table.available_quantity).where(table.id == ref.id)
        ).scalar_one()

    @staticmethod
    def _item_to_domain(row: CatalogItemRow) -> CatalogItem:
        return CatalogItem(
            id=row.id,
            name=row.name,
            unit_price=Money(row.unit_price, row.currency),
            available_quantity=row.available_quantity,
            low_availability_threshold=row.low_availability_threshold,
            active=row.active,
        )

    @staticmethod
    def _combinations_with_currency():
        # Combinations are priced in their parent item's currency
        return select(AttributeCombinationRow, CatalogItemRow.currency).join(
            CatalogItemRow, CatalogItemRow.id == AttributeCombinationRow.item_id
        )

    @staticmethod
    def _combination_to_domain(
        row: AttributeCombinationRow, currency: str
    ) -> AttributeCombination:
        return AttributeCombination(
            id=row.id,
            item_id=row.item_id,
            attributes=dict(row.attributes),
            available_quantity=row.available_quantity,
            unit_price=Money(row.unit_price, currency) if row.unit_price is not None else None,
            active=row.active,
        )
