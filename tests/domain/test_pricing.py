"""Unit tests for the PricingResolver domain service."""

from decimal import Decimal

import pytest

from storefront.domain.exceptions import DiscountInvalid, EmptyCart
from storefront.domain.model.catalog import ItemRef
from storefront.domain.model.discount import DiscountCode, DiscountKind
from storefront.domain.model.order import OrderLineItem
from storefront.domain.model.value_objects import Money, Quantity
from storefront.domain.service.pricing import PricingResolver


def _line(price: str, qty: int = 1, item_id: str = "1") -> OrderLineItem:
    return OrderLineItem(
        item_ref=ItemRef.item(item_id),
        item_name=f"Item {item_id}",
        quantity=Quantity(qty),
        unit_price=Money.of(price),
    )


def _discount(kind: DiscountKind, value: str, **overrides) -> DiscountCode:
    return DiscountCode(id="d1", code="CODE", kind=kind, value=Decimal(value), **overrides)


class TestPricing:

    def test_no_discount(self):
        breakdown = PricingResolver().price([_line("20.00", 2), _line("5.50", 1, "2")])
        assert breakdown.subtotal == Money.of("45.50")
        assert breakdown.discount_amount == Money.zero()
        assert breakdown.total == Money.of("45.50")

    def test_percentage_rounds_once_at_the_end(self):
        breakdown = PricingResolver().price(
            [_line("19.99")], _discount(DiscountKind.PERCENTAGE, "15")
        )
        assert breakdown.subtotal.amount == Decimal("19.99")
        assert breakdown.discount_amount.amount == Decimal("3.00")
        assert breakdown.total.amount == Decimal("16.99")

    def test_subtotal_is_the_exact_line_sum(self):
        lines = [_line("0.35", 3), _line("19.99", 7, "2"), _line("0.01", 1, "3")]
        breakdown = PricingResolver().price(lines)
        assert breakdown.subtotal.amount == Decimal("140.99")
        assert breakdown.subtotal == sum((l.line_total for l in lines), Money.zero())

    def test_fixed_discount_larger_than_subtotal(self):
        breakdown = PricingResolver().price([_line("8.00")], _discount(DiscountKind.FIXED, "10"))
        assert breakdown.discount_amount == Money.of("8.00")
        assert breakdown.total == Money.zero()

    def test_total_identity_holds(self):
        breakdown = PricingResolver().price(
            [_line("33.33", 3), _line("0.07", 7, "2")],
            _discount(DiscountKind.PERCENTAGE, "12.5"),
        )
        assert breakdown.subtotal - breakdown.discount_amount == breakdown.total

    def test_minimum_not_met(self):
        code = _discount(DiscountKind.FIXED, "5", min_order_amount=Money.of("25"))
        with pytest.raises(DiscountInvalid, match="minimum_not_met"):
            PricingResolver().price([_line("24.99")], code)

    def test_empty_items(self):
        with pytest.raises(EmptyCart):
            PricingResolver().price([])
