"""Order aggregate and its lifecycle state machine.

The Order is an aggregate root that owns its line items.  Line items are
immutable price snapshots taken at commit time.  After the commit the
only permitted mutations are the status and payment-status transitions
defined here, each of which is timestamped for audit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from storefront.domain.exceptions import (
    EmptyCart,
    IllegalStateTransition,
    ValidationError,
)
from storefront.domain.model.catalog import ItemRef
from storefront.domain.model.contact import ContactInfo
from storefront.domain.model.owner import OwnerRef
from storefront.domain.model.value_objects import Money, Quantity


class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    REFUNDED = "refunded"


class Actor(Enum):
    SYSTEM = "system"
    ADMIN = "admin"
    PAYMENT = "payment"
    CUSTOMER = "customer"


STATUS_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

PAYMENT_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.UNPAID: frozenset({PaymentStatus.PAID}),
    PaymentStatus.PAID: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.REFUNDED: frozenset(),
}

# Statuses past ``processing`` need a settled payment.
REQUIRES_PAYMENT = frozenset({OrderStatus.SHIPPED, OrderStatus.DELIVERED})

MAX_LINE_ITEMS = 50


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class OrderLineItem:
    """Captures the price of an item or combination at commit time.

    Never mutated and never re-derived from the catalog.
    """

    item_ref: ItemRef
    item_name: str
    quantity: Quantity
    unit_price: Money  # locked at commit time
    attributes: dict[str, str] = field(default_factory=dict)

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity.value


@dataclass(frozen=True)
class StatusChange:
    dimension: str  # "status" or "payment"
    from_value: str | None
    to_value: str
    actor: Actor
    at: datetime


@dataclass
class Order:
    """Aggregate root for committed orders.

    Use the ``Order.place()`` factory for new orders.  The ``__init__`` is
    intentionally simple so the repository can reconstitute persisted
    orders without re-validating.
    """

    id: int | None
    owner: OwnerRef
    contact: ContactInfo
    items: list[OrderLineItem]
    subtotal: Money
    discount_amount: Money
    total: Money
    discount_code_id: str | None = None
    discount_code: str | None = None
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    idempotency_key: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    history: list[StatusChange] = field(default_factory=list)

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def place(
        owner: OwnerRef,
        contact: ContactInfo,
        items: list[OrderLineItem],
        subtotal: Money,
        discount_amount: Money,
        total: Money,
        discount_code_id: str | None = None,
        discount_code: str | None = None,
        idempotency_key: str | None = None,
        now: datetime | None = None,
    ) -> Order:
        """Create a new pending, unpaid order, enforcing all invariants."""
        if not items:
            raise EmptyCart("Order must contain at least one item")
        if len(items) > MAX_LINE_ITEMS:
            raise ValidationError(f"Maximum {MAX_LINE_ITEMS} items per order")

        line_sum = Money.zero(subtotal.currency)
        for item in items:
            line_sum = line_sum + item.line_total
        if line_sum != subtotal:
            raise ValidationError(
                f"Subtotal {subtotal.amount} does not match line items {line_sum.amount}"
            )
        if subtotal - discount_amount != total:
            raise ValidationError(
                f"Total {total} does not equal {subtotal} minus {discount_amount}"
            )

        now = now or utcnow()
        order = Order(
            id=None,
            owner=owner,
            contact=contact,
            items=list(items),
            subtotal=subtotal,
            discount_amount=discount_amount,
            total=total,
            discount_code_id=discount_code_id,
            discount_code=discount_code,
            idempotency_key=idempotency_key,
            created_at=now,
            updated_at=now,
        )
        order.history.append(
            StatusChange("status", None, OrderStatus.PENDING.value, Actor.SYSTEM, now)
        )
        return order

    # --- State transitions ----------------------------------------------------

    def transition_status(
        self, new_status: OrderStatus, actor: Actor, now: datetime | None = None
    ) -> StatusChange:
        """Move the fulfillment status one step along the allowed graph."""
        current = self.status
        if actor is Actor.PAYMENT:
            raise IllegalStateTransition(
                "status", current.value, new_status.value,
                "payment signals may only change payment status",
            )
        if actor is Actor.CUSTOMER and not (
            new_status is OrderStatus.CANCELLED and current is OrderStatus.PENDING
        ):
            raise IllegalStateTransition(
                "status", current.value, new_status.value,
                "customers may only cancel pending orders",
            )
        if new_status not in STATUS_TRANSITIONS[current]:
            raise IllegalStateTransition("status", current.value, new_status.value)
        if new_status in REQUIRES_PAYMENT and self.payment_status is not PaymentStatus.PAID:
            raise IllegalStateTransition(
                "status", current.value, new_status.value,
                f"payment status is {self.payment_status.value}",
            )

        self.status = new_status
        return self._record("status", current.value, new_status.value, actor, now)

    def transition_payment(
        self, new_status: PaymentStatus, actor: Actor, now: datetime | None = None
    ) -> StatusChange:
        """Apply a payment confirmation or refund."""
        current = self.payment_status
        if actor is Actor.CUSTOMER:
            raise IllegalStateTransition(
                "payment", current.value, new_status.value,
                "customers cannot change payment status",
            )
        if new_status not in PAYMENT_TRANSITIONS[current]:
            raise IllegalStateTransition("payment", current.value, new_status.value)

        self.payment_status = new_status
        return self._record("payment", current.value, new_status.value, actor, now)

    # --- Computed properties --------------------------------------------------

    @property
    def is_cancelled(self) -> bool:
        return self.status is OrderStatus.CANCELLED

    # --- Internal helpers -----------------------------------------------------

    def _record(
        self, dimension: str, old: str, new: str, actor: Actor, now: datetime | None
    ) -> StatusChange:
        change = StatusChange(dimension, old, new, actor, now or utcnow())
        self.history.append(change)
        self.updated_at = change.at
        return change
