"""SQLAlchemy implementation of DiscountRepository."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import exists, or_, select, update
from sqlalchemy.orm import Session

from storefront.domain.model.discount import DiscountCode, DiscountKind, normalize_code
from storefront.domain.model.owner import OwnerRef
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.discount_repository import DiscountRepository
from storefront.infrastructure.persistence.tables import DiscountCodeRow, DiscountUsageRow


class SqlDiscountRepository(DiscountRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    # --- DiscountRepository interface -----------------------------------------

    def get_by_code(self, code: str) -> DiscountCode | None:
        row = self._session.execute(
            select(DiscountCodeRow)
            .where(DiscountCodeRow.code == normalize_code(code))
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return self._to_domain(row) if row is not None else None

    def save(self, discount: DiscountCode) -> None:
        self._session.merge(self._to_row(discount))
        self._session.flush()

    def has_been_used_by(self, discount_id: str, owner: OwnerRef) -> bool:
        return self._session.execute(
            select(
                exists().where(
                    DiscountUsageRow.discount_code_id == discount_id,
                    DiscountUsageRow.owner_key == owner.key,
                )
            )
        ).scalar_one()

    def redeem(
        self, discount_id: str, owner: OwnerRef, order_id: int, amount: Decimal
    ) -> bool:
        result = self._session.execute(
            update(DiscountCodeRow)
            .where(
                DiscountCodeRow.id == discount_id,
                or_(
                    DiscountCodeRow.usage_limit.is_(None),
                    DiscountCodeRow.usage_count < DiscountCodeRow.usage_limit,
                ),
            )
            .values(usage_count=DiscountCodeRow.usage_count + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False
        self._session.add(
            DiscountUsageRow(
                discount_code_id=discount_id,
                owner_key=owner.key,
                order_id=order_id,
                amount=amount,
            )
        )
        self._session.flush()
        return True

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_row(discount: DiscountCode) -> DiscountCodeRow:
        return DiscountCodeRow(
            id=discount.id,
            code=discount.code,
            kind=discount.kind.value,
            value=discount.value,
            active=discount.active,
            starts_at=discount.starts_at,
            expires_at=discount.expires_at,
            usage_limit=discount.usage_limit,
            usage_count=discount.usage_count,
            one_per_customer=discount.one_per_customer,
            min_order_amount=discount.min_order_amount.amount if discount.min_order_amount else None,
            max_discount_amount=(
                discount.max_discount_amount.amount if discount.max_discount_amount else None
            ),
        )

    @staticmethod
    def _to_domain(row: DiscountCodeRow) -> DiscountCode:
        return DiscountCode(
            id=row.id,
            code=row.code,
            kind=DiscountKind(row.kind),
            value=row.value,
            active=row.active,
            starts_at=row.starts_at,
            expires_at=row.expires_at,
            usage_limit=row.usage_limit,
            usage_count=row.usage_count,
            one_per_customer=row.one_per_customer,
            min_order_amount=Money(row.min_order_amount) if row.min_order_amount is not None else None,
            max_discount_amount=(
                Money(row.max_discount_amount) if row.max_discount_amount is not None else None
            ),
        )
