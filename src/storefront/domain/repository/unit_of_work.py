"""Abstract unit of work.

Groups the repositories that a checkout touches under a single
transaction.  Leaving the ``with`` block without calling ``commit()``
discards every change made through the repositories.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from storefront.domain.repository.catalog_repository import CatalogRepository
from storefront.domain.repository.discount_repository import DiscountRepository
from storefront.domain.repository.order_repository import OrderRepository


class UnitOfWork(ABC):

    catalog: CatalogRepository
    orders: OrderRepository
    discounts: DiscountRepository

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.rollback()

    @abstractmethod
    def commit(self) -> None:
        """Make every change in this unit of work durable."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard uncommitted changes.  A no-op after ``commit()``."""
