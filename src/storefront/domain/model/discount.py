"""DiscountCode aggregate.

A code reduces an order's subtotal either by a percentage or by a fixed
amount.  Applicability checks raise DiscountInvalid with a short machine
``reason`` so callers can decide whether to retry without the code.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from storefront.domain.exceptions import DiscountInvalid, ValidationError
from storefront.domain.model.value_objects import Money

HUNDRED = Decimal("100")


class DiscountKind(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


def normalize_code(code: str) -> str:
    return code.strip().upper()


@dataclass
class DiscountCode:
    """Invariants:
    - percentage values lie in (0, 100]
    - fixed values are positive
    - ``usage_count`` never exceeds ``usage_limit`` when a limit is set
    """

    id: str
    code: str
    kind: DiscountKind
    value: Decimal
    active: bool = True
    starts_at: datetime | None = None
    expires_at: datetime | None = None
    usage_limit: int | None = None
    usage_count: int = 0
    one_per_customer: bool = False
    min_order_amount: Money | None = None
    max_discount_amount: Money | None = None

    def __post_init__(self) -> None:
        self.code = normalize_code(self.code)
        if not self.code:
            raise ValidationError("Discount code is required")
        if not isinstance(self.value, Decimal) or self.value <= 0:
            raise ValidationError("Discount value must be a positive Decimal")
        if self.kind is DiscountKind.PERCENTAGE and self.value > HUNDRED:
            raise ValidationError("Percentage discount cannot exceed 100")
        if self.usage_limit is not None and self.usage_limit < 0:
            raise ValidationError("Usage limit cannot be negative")

    # --- Applicability --------------------------------------------------------

    def ensure_redeemable(self, now: datetime, already_used_by_owner: bool = False) -> None:
        """Raise DiscountInvalid unless the code can be used at ``now``."""
        if not self.active:
            raise DiscountInvalid(self.code, "inactive")
        if self.starts_at is not None and now < self.starts_at:
            raise DiscountInvalid(self.code, "not_started")
        if self.expires_at is not None and now > self.expires_at:
            raise DiscountInvalid(self.code, "expired")
        if self.usage_limit is not None and self.usage_count >= self.usage_limit:
            raise DiscountInvalid(self.code, "usage_limit")
        if self.one_per_customer and already_used_by_owner:
            raise DiscountInvalid(self.code, "already_used")

    def ensure_minimum_met(self, subtotal: Money) -> None:
        if self.min_order_amount is not None and subtotal < self.min_order_amount:
            raise DiscountInvalid(self.code, "minimum_not_met")

    # --- Calculation ----------------------------------------------------------

    def reduction_for(self, subtotal: Money) -> Money:
        """Full-precision reduction, never larger than the subtotal."""
        if self.kind is DiscountKind.PERCENTAGE:
            reduction = subtotal * (self.value / HUNDRED)
            if self.max_discount_amount is not None:
                reduction = reduction.min(self.max_discount_amount)
        else:
            reduction = Money(self.value, subtotal.currency)
        return reduction.min(subtotal)
