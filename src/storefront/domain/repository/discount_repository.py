"""Abstract repository for DiscountCode aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal

from storefront.domain.model.discount import DiscountCode
from storefront.domain.model.owner import OwnerRef


class DiscountRepository(ABC):

    @abstractmethod
    def get_by_code(self, code: str) -> DiscountCode | None:
        """Return a discount code by its (case-insensitive) code."""

    @abstractmethod
    def save(self, discount: DiscountCode) -> None:
        """Persist a new or updated discount code."""

    @abstractmethod
    def has_been_used_by(self, discount_id: str, owner: OwnerRef) -> bool:
        """True if ``owner`` already redeemed this code on some order."""

    @abstractmethod
    def redeem(
        self, discount_id: str, owner: OwnerRef, order_id: int, amount: Decimal
    ) -> bool:
        """Count one use and record it against ``order_id``.

        The usage-limit check and the increment must be one conditional
        operation.  Returns False (and changes nothing) when the limit
        has been reached.
        """
