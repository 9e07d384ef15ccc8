"""Domain service: Pricing & Discount Resolver.

Computes the authoritative subtotal, discount and total for a set of
line items whose unit prices were read from the catalog inside the
commit.  Nothing the client sent about prices is consulted here.

All arithmetic runs at full Decimal precision.  Catalog prices are whole
cents, so the subtotal is the exact sum of the lines.  The discount is
rounded once, at the very end, and the total is the difference, so
``subtotal - discount == total`` holds to the cent.
"""

from __future__ import annotations

from dataclasses import dataclass

from storefront.domain.exceptions import EmptyCart
from storefront.domain.model.discount import DiscountCode
from storefront.domain.model.order import OrderLineItem
from storefront.domain.model.value_objects import Money


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Money
    discount_amount: Money
    total: Money


class PricingResolver:

    def __init__(self, currency: str = "USD") -> None:
        self._currency = currency

    def price(
        self,
        items: list[OrderLineItem],
        discount: DiscountCode | None = None,
    ) -> PriceBreakdown:
        """Price ``items`` and apply at most one discount code.

        Raises DiscountInvalid if the subtotal is below the code's minimum
        order amount.
        """
        if not items:
            raise EmptyCart("Cannot price an empty order")

        exact_subtotal = Money.zero(self._currency)
        for item in items:
            exact_subtotal = exact_subtotal + item.line_total

        exact_discount = Money.zero(self._currency)
        if discount is not None:
            discount.ensure_minimum_met(exact_subtotal)
            exact_discount = discount.reduction_for(exact_subtotal)

        subtotal = exact_subtotal.rounded()
        discount_amount = exact_discount.rounded().min(subtotal)
        return PriceBreakdown(
            subtotal=subtotal,
            discount_amount=discount_amount,
            total=subtotal - discount_amount,
        )
