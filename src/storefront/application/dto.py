"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the outer surfaces (CLI, cart UI, admin) and the
application layer without exposing domain internals.  Money travels as
Decimal, timestamps as timezone-aware UTC datetimes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from storefront.domain.model.order import Order


@dataclass(frozen=True)
class CartLineSpec:
    """Input: one cart line as supplied by the cart surface.

    Exactly one of ``item_id`` / ``combination_id`` must be set.
    ``display_price`` is whatever the shopper was shown; it is never
    used for the charge.
    """

    quantity: int
    item_id: str | None = None
    combination_id: str | None = None
    display_price: Decimal | None = None


@dataclass(frozen=True)
class CommitResult:
    order_id: int
    subtotal: Decimal
    discount_amount: Decimal
    total: Decimal
    replayed: bool = False


@dataclass(frozen=True)
class OrderLineItemDTO:
    """Output: a single line item as displayed to the user."""

    item_ref: str
    item_name: str
    attributes: dict[str, str]
    quantity: int
    unit_price: Decimal
    line_total: Decimal


@dataclass(frozen=True)
class StatusChangeDTO:
    dimension: str
    from_value: str | None
    to_value: str
    actor: str
    at: datetime


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as displayed to the user."""

    id: int
    owner: str
    is_guest: bool
    contact: dict[str, str | None]
    status: str
    payment_status: str
    items: list[OrderLineItemDTO]
    subtotal: Decimal
    discount_code: str | None
    discount_amount: Decimal
    total: Decimal
    created_at: datetime
    updated_at: datetime
    history: list[StatusChangeDTO] = field(default_factory=list)

    @staticmethod
    def from_order(order: Order) -> OrderDTO:
        return OrderDTO(
            id=order.id,  # type: ignore[arg-type]
            owner=order.owner.key,
            is_guest=order.owner.is_guest,
            contact=order.contact.to_dict(),
            status=order.status.value,
            payment_status=order.payment_status.value,
            items=[
                OrderLineItemDTO(
                    item_ref=str(item.item_ref),
                    item_name=item.item_name,
                    attributes=dict(item.attributes),
                    quantity=item.quantity.value,
                    unit_price=item.unit_price.amount,
                    line_total=item.line_total.amount,
                )
                for item in order.items
            ],
            subtotal=order.subtotal.amount,
            discount_code=order.discount_code,
            discount_amount=order.discount_amount.amount,
            total=order.total.amount,
            created_at=order.created_at,
            updated_at=order.updated_at,
            history=[
                StatusChangeDTO(
                    dimension=change.dimension,
                    from_value=change.from_value,
                    to_value=change.to_value,
                    actor=change.actor.value,
                    at=change.at,
                )
                for change in order.history
            ],
        )
