"""Unit tests for the Order aggregate and its lifecycle rules."""

from datetime import datetime, timezone

import pytest

from storefront.domain.exceptions import EmptyCart, IllegalStateTransition, ValidationError
from storefront.domain.model.catalog import ItemRef
from storefront.domain.model.contact import ContactInfo
from storefront.domain.model.order import (
    Actor,
    Order,
    OrderLineItem,
    OrderStatus,
    PaymentStatus,
)
from storefront.domain.model.owner import OwnerRef
from storefront.domain.model.value_objects import Money, Quantity

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

CONTACT = ContactInfo(
    full_name="Ada Lovelace",
    email="ada@example.com",
    street="12 Analytical Way",
    city="London",
    state="LN",
    postal_code="N1 9GU",
    country="UK",
)


def _make_item(item_id: str = "1", qty: int = 1, price: str = "15.00") -> OrderLineItem:
    """Helper to build a valid line item."""
    return OrderLineItem(
        item_ref=ItemRef.item(item_id),
        item_name="Widget",
        quantity=Quantity(qty),
        unit_price=Money.of(price),
    )


def _place(items=None, discount: str = "0") -> Order:
    items = items if items is not None else [_make_item(qty=2, price="10.00")]
    subtotal = Money.zero()
    for item in items:
        subtotal = subtotal + item.line_total
    reduction = Money.of(discount)
    return Order.place(
        owner=OwnerRef.account("acct-1"),
        contact=CONTACT,
        items=items,
        subtotal=subtotal,
        discount_amount=reduction,
        total=subtotal - reduction,
        now=NOW,
    )


def _paid_processing_order() -> Order:
    order = _place()
    order.transition_payment(PaymentStatus.PAID, Actor.PAYMENT, NOW)
    order.transition_status(OrderStatus.PROCESSING, Actor.ADMIN, NOW)
    return order


class TestOrderPlacement:

    def test_happy_path(self):
        order = _place()
        assert order.id is None  # assigned by repository
        assert order.status is OrderStatus.PENDING
        assert order.payment_status is PaymentStatus.UNPAID
        assert order.total == Money.of("20.00")
        assert order.created_at == order.updated_at == NOW

    def test_records_initial_history_entry(self):
        order = _place()
        assert len(order.history) == 1
        entry = order.history[0]
        assert (entry.dimension, entry.from_value, entry.to_value) == ("status", None, "pending")
        assert entry.actor is Actor.SYSTEM

    def test_empty_items_rejected(self):
        with pytest.raises(EmptyCart):
            Order.place(
                owner=OwnerRef.account("acct-1"),
                contact=CONTACT,
                items=[],
                subtotal=Money.zero(),
                discount_amount=Money.zero(),
                total=Money.zero(),
            )

    def test_51_lines_rejected(self):
        items = [_make_item(item_id=str(i), price="1.00") for i in range(51)]
        with pytest.raises(ValidationError, match="Maximum 50 items"):
            _place(items)

    def test_subtotal_must_match_lines(self):
        with pytest.raises(ValidationError, match="does not match line items"):
            Order.place(
                owner=OwnerRef.account("acct-1"),
                contact=CONTACT,
                items=[_make_item(price="10.00")],
                subtotal=Money.of("9.00"),
                discount_amount=Money.zero(),
                total=Money.of("9.00"),
            )

    def test_total_must_be_subtotal_minus_discount(self):
        with pytest.raises(ValidationError, match="does not equal"):
            Order.place(
                owner=OwnerRef.account("acct-1"),
                contact=CONTACT,
                items=[_make_item(price="10.00")],
                subtotal=Money.of("10.00"),
                discount_amount=Money.of("1.00"),
                total=Money.of("10.00"),
            )

    def test_subtotal_matching_only_after_rounding_rejected(self):
        # 3 x 0.335 is 1.005; a 1.01 subtotal would not reconcile with the lines
        with pytest.raises(ValidationError, match="does not match line items"):
            Order.place(
                owner=OwnerRef.account("acct-1"),
                contact=CONTACT,
                items=[_make_item(qty=3, price="0.335")],
                subtotal=Money.of("1.01"),
                discount_amount=Money.zero(),
                total=Money.of("1.01"),
            )


class TestStatusTransitions:

    def test_admin_moves_pending_to_processing(self):
        order = _place()
        change = order.transition_status(OrderStatus.PROCESSING, Actor.ADMIN, NOW)
        assert order.status is OrderStatus.PROCESSING
        assert (change.from_value, change.to_value) == ("pending", "processing")
        assert order.history[-1] == change

    def test_full_lifecycle(self):
        order = _paid_processing_order()
        order.transition_status(OrderStatus.SHIPPED, Actor.ADMIN, NOW)
        order.transition_status(OrderStatus.DELIVERED, Actor.ADMIN, NOW)
        assert order.status is OrderStatus.DELIVERED
        assert len(order.history) == 5

    def test_cannot_skip_processing(self):
        order = _place()
        order.transition_payment(PaymentStatus.PAID, Actor.PAYMENT, NOW)
        with pytest.raises(IllegalStateTransition, match="pending to shipped"):
            order.transition_status(OrderStatus.SHIPPED, Actor.ADMIN, NOW)

    def test_shipping_requires_payment(self):
        order = _place()
        order.transition_status(OrderStatus.PROCESSING, Actor.ADMIN, NOW)
        with pytest.raises(IllegalStateTransition, match="payment status is unpaid"):
            order.transition_status(OrderStatus.SHIPPED, Actor.ADMIN, NOW)

    @pytest.mark.parametrize("terminal", [OrderStatus.DELIVERED, OrderStatus.CANCELLED])
    def test_terminal_states_are_final(self, terminal):
        order = _paid_processing_order()
        if terminal is OrderStatus.DELIVERED:
            order.transition_status(OrderStatus.SHIPPED, Actor.ADMIN, NOW)
        order.transition_status(terminal, Actor.ADMIN, NOW)
        with pytest.raises(IllegalStateTransition):
            order.transition_status(OrderStatus.PROCESSING, Actor.ADMIN, NOW)

    def test_shipped_cannot_be_cancelled(self):
        order = _paid_processing_order()
        order.transition_status(OrderStatus.SHIPPED, Actor.ADMIN, NOW)
        with pytest.raises(IllegalStateTransition):
            order.transition_status(OrderStatus.CANCELLED, Actor.ADMIN, NOW)

    def test_failed_transition_leaves_order_untouched(self):
        order = _place()
        with pytest.raises(IllegalStateTransition):
            order.transition_status(OrderStatus.DELIVERED, Actor.ADMIN, NOW)
        assert order.status is OrderStatus.PENDING
        assert len(order.history) == 1


class TestActorRules:

    def test_customer_may_cancel_pending(self):
        order = _place()
        order.transition_status(OrderStatus.CANCELLED, Actor.CUSTOMER, NOW)
        assert order.is_cancelled

    def test_customer_cannot_cancel_processing(self):
        order = _place()
        order.transition_status(OrderStatus.PROCESSING, Actor.ADMIN, NOW)
        with pytest.raises(IllegalStateTransition, match="customers may only cancel"):
            order.transition_status(OrderStatus.CANCELLED, Actor.CUSTOMER, NOW)

    def test_customer_cannot_advance(self):
        with pytest.raises(IllegalStateTransition):
            _place().transition_status(OrderStatus.PROCESSING, Actor.CUSTOMER, NOW)

    def test_customer_cannot_change_payment(self):
        with pytest.raises(IllegalStateTransition):
            _place().transition_payment(PaymentStatus.PAID, Actor.CUSTOMER, NOW)

    def test_payment_signal_cannot_change_status(self):
        with pytest.raises(IllegalStateTransition, match="payment signals"):
            _place().transition_status(OrderStatus.PROCESSING, Actor.PAYMENT, NOW)

    def test_payment_does_not_advance_status(self):
        order = _place()
        order.transition_payment(PaymentStatus.PAID, Actor.PAYMENT, NOW)
        assert order.status is OrderStatus.PENDING


class TestPaymentTransitions:

    def test_refund_after_payment(self):
        order = _place()
        order.transition_payment(PaymentStatus.PAID, Actor.PAYMENT, NOW)
        order.transition_payment(PaymentStatus.REFUNDED, Actor.ADMIN, NOW)
        assert order.payment_status is PaymentStatus.REFUNDED

    def test_refund_requires_payment(self):
        with pytest.raises(IllegalStateTransition, match="unpaid to refunded"):
            _place().transition_payment(PaymentStatus.REFUNDED, Actor.ADMIN, NOW)

    def test_double_payment_rejected(self):
        order = _place()
        order.transition_payment(PaymentStatus.PAID, Actor.PAYMENT, NOW)
        with pytest.raises(IllegalStateTransition):
            order.transition_payment(PaymentStatus.PAID, Actor.PAYMENT, NOW)
