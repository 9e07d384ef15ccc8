"""Application service: Add Discount Code use case."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from decimal import Decimal, InvalidOperation
from uuid import uuid4

from storefront.domain.exceptions import ValidationError
from storefront.domain.model.discount import DiscountCode, DiscountKind
from storefront.domain.model.value_objects import Money
from storefront.domain.repository.unit_of_work import UnitOfWork


class AddDiscountCodeHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(
        self,
        code: str,
        kind: DiscountKind,
        value: str,
        starts_at: datetime | None = None,
        expires_at: datetime | None = None,
        usage_limit: int | None = None,
        one_per_customer: bool = False,
        min_order_amount: str | None = None,
        max_discount_amount: str | None = None,
    ) -> DiscountCode:
        try:
            amount = Decimal(str(value))
        except InvalidOperation as exc:
            raise ValidationError(f"Invalid discount value: {value!r}") from exc
        if starts_at and expires_at and expires_at <= starts_at:
            raise ValidationError("Discount must expire after it starts")

        discount = DiscountCode(
            id=uuid4().hex,
            code=code,
            kind=kind,
            value=amount,
            starts_at=starts_at,
            expires_at=expires_at,
            usage_limit=usage_limit,
            one_per_customer=one_per_customer,
            min_order_amount=Money.of(min_order_amount) if min_order_amount else None,
            max_discount_amount=Money.of(max_discount_amount) if max_discount_amount else None,
        )
        with self._uow_factory() as uow:
            if uow.discounts.get_by_code(discount.code) is not None:
                raise ValidationError(f"Discount code '{discount.code}' already exists")
            uow.discounts.save(discount)
            uow.commit()
        return discount
