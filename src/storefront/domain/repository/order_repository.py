"""Abstract repository for Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from storefront.domain.model.order import Order, OrderStatus, PaymentStatus
from storefront.domain.model.owner import OwnerRef


@dataclass(frozen=True)
class OrderFilters:
    status: OrderStatus | None = None
    payment_status: PaymentStatus | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None
    limit: int | None = None
    offset: int = 0

    def matches(self, order: Order) -> bool:
        if self.status is not None and order.status is not self.status:
            return False
        if self.payment_status is not None and order.payment_status is not self.payment_status:
            return False
        if self.created_from is not None and order.created_at < self.created_from:
            return False
        if self.created_to is not None and order.created_at > self.created_to:
            return False
        return True


class OrderRepository(ABC):

    @abstractmethod
    def add(self, order: Order) -> None:
        """Insert a new order with its line items and assign its ID."""

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def get_by_idempotency_key(self, owner: OwnerRef, key: str) -> Order | None:
        """Return the order an owner already committed under ``key``."""

    @abstractmethod
    def list_for_owner(self, owner: OwnerRef, filters: OrderFilters) -> list[Order]:
        """Return an owner's orders, newest first."""

    @abstractmethod
    def list_by_email(self, email: str, filters: OrderFilters) -> list[Order]:
        """Return orders whose contact email matches, newest first."""

    @abstractmethod
    def save(self, order: Order) -> None:
        """Persist status, payment status and new history entries."""
