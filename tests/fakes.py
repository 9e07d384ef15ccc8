"""In-memory fake repositories for testing.

These implement the same abstract interfaces as the SQLAlchemy
repositories but keep everything in dicts. No database, no side effects.

A FakeUnitOfWork holds its factory's lock for the whole ``with`` block,
so concurrent checkouts serialize the way they do behind
``BEGIN IMMEDIATE``.  Repositories hand out copies: callers only change
the store through repository methods, as with a real database.
"""

from __future__ import annotations

import copy
import threading
from dataclasses import dataclass, field
from decimal import Decimal

from storefront.domain.exceptions import EntityNotFoundError, TransactionTimeout
from storefront.domain.model.catalog import AttributeCombination, CatalogItem, ItemRef
from storefront.domain.model.discount import DiscountCode, normalize_code
from storefront.domain.model.order import Order
from storefront.domain.model.owner import OwnerRef
from storefront.domain.repository.account_directory import AccountDirectory
from storefront.domain.repository.catalog_repository import CatalogRepository
from storefront.domain.repository.discount_repository import DiscountRepository
from storefront.domain.repository.order_repository import OrderFilters, OrderRepository
from storefront.domain.repository.unit_of_work import UnitOfWork


@dataclass
class FakeStore:
    items: dict[str, CatalogItem] = field(default_factory=dict)
    combinations: dict[str, AttributeCombination] = field(default_factory=dict)
    orders: dict[int, Order] = field(default_factory=dict)
    discounts: dict[str, DiscountCode] = field(default_factory=dict)
    usages: list[tuple[str, str, int, Decimal]] = field(default_factory=list)
    next_order_id: int = 1


class FakeCatalogRepository(CatalogRepository):

    def __init__(self, store: FakeStore) -> None:
        self._store = store

    def get_item(self, item_id: str) -> CatalogItem | None:
        return copy.deepcopy(self._store.items.get(item_id))

    def get_combination(self, combination_id: str) -> AttributeCombination | None:
        return copy.deepcopy(self._store.combinations.get(combination_id))

    def list_items(self) -> list[CatalogItem]:
        return [copy.deepcopy(i) for i in sorted(self._store.items.values(), key=lambda i: i.id)]

    def list_combinations(self, item_id: str | None = None) -> list[AttributeCombination]:
        return [
            copy.deepcopy(c)
            for c in sorted(self._store.combinations.values(), key=lambda c: c.id)
            if item_id is None or c.item_id == item_id
        ]

    def save_item(self, item: CatalogItem) -> None:
        self._store.items[item.id] = copy.deepcopy(item)

    def save_combination(self, combination: AttributeCombination) -> None:
        self._store.combinations[combination.id] = copy.deepcopy(combination)

    def decrement_if_available(self, ref: ItemRef, quantity: int) -> int | None:
        record = self._record(ref)
        if record is None or not record.active or record.available_quantity < quantity:
            return None
        if ref.is_combination:
            parent = self._store.items.get(record.item_id)
            if parent is None or not parent.active:
                return None
        record.available_quantity -= quantity
        return record.available_quantity

    def increment(self, ref: ItemRef, quantity: int) -> int:
        record = self._record(ref)
        if record is None:
            raise EntityNotFoundError(f"{ref} not found")
        record.available_quantity += quantity
        return record.available_quantity

    def _record(self, ref: ItemRef):
        if ref.is_combination:
            return self._store.combinations.get(ref.id)
        return self._store.items.get(ref.id)


class FakeOrderRepository(OrderRepository):

    def __init__(self, store: FakeStore) -> None:
        self._store = store

    def add(self, order: Order) -> None:
        order.id = self._store.next_order_id
        self._store.next_order_id += 1
        self._store.orders[order.id] = copy.deepcopy(order)

    def get_by_id(self, order_id: int) -> Order | None:
        return copy.deepcopy(self._store.orders.get(order_id))

    def get_by_idempotency_key(self, owner: OwnerRef, key: str) -> Order | None:
        for order in self._store.orders.values():
            if order.owner.same_owner(owner) and order.idempotency_key == key:
                return copy.deepcopy(order)
        return None

    def list_for_owner(self, owner: OwnerRef, filters: OrderFilters) -> list[Order]:
        def belongs(order: Order) -> bool:
            if not order.owner.same_owner(owner):
                return False
            return not owner.is_guest or order.contact.email == owner.email

        return self._list(belongs, filters)

    def list_by_email(self, email: str, filters: OrderFilters) -> list[Order]:
        return self._list(lambda o: o.contact.email == email, filters)

    def save(self, order: Order) -> None:
        if order.id not in self._store.orders:
            raise EntityNotFoundError(f"Order #{order.id} not found")
        self._store.orders[order.id] = copy.deepcopy(order)

    def _list(self, predicate, filters: OrderFilters) -> list[Order]:
        matching = [
            o for o in self._store.orders.values() if predicate(o) and filters.matches(o)
        ]
        matching.sort(key=lambda o: (o.created_at, o.id), reverse=True)
        end = None if filters.limit is None else filters.offset + filters.limit
        return [copy.deepcopy(o) for o in matching[filters.offset:end]]


class FakeDiscountRepository(DiscountRepository):

    def __init__(self, store: FakeStore) -> None:
        self._store = store

    def get_by_code(self, code: str) -> DiscountCode | None:
        return copy.deepcopy(self._store.discounts.get(normalize_code(code)))

    def save(self, discount: DiscountCode) -> None:
        self._store.discounts[discount.code] = copy.deepcopy(discount)

    def has_been_used_by(self, discount_id: str, owner: OwnerRef) -> bool:
        return any(d == discount_id and k == owner.key for d, k, _, _ in self._store.usages)

    def redeem(
        self, discount_id: str, owner: OwnerRef, order_id: int, amount: Decimal
    ) -> bool:
        discount = next(
            (d for d in self._store.discounts.values() if d.id == discount_id), None
        )
        if discount is None:
            return False
        if discount.usage_limit is not None and discount.usage_count >= discount.usage_limit:
            return False
        discount.usage_count += 1
        self._store.usages.append((discount_id, owner.key, order_id, amount))
        return True


class FakeUnitOfWork(UnitOfWork):
    """Snapshot-and-restore transaction over a FakeStore."""

    def __init__(self, store: FakeStore, lock: threading.Lock, lock_timeout: float) -> None:
        self._store = store
        self._lock = lock
        self._lock_timeout = lock_timeout
        self._snapshot: FakeStore | None = None
        self._committed = False

    def __enter__(self) -> FakeUnitOfWork:
        if not self._lock.acquire(timeout=self._lock_timeout):
            raise TransactionTimeout("Could not acquire checkout locks in time")
        self._snapshot = copy.deepcopy(self._store)
        self._committed = False
        self.catalog = FakeCatalogRepository(self._store)
        self.orders = FakeOrderRepository(self._store)
        self.discounts = FakeDiscountRepository(self._store)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self.rollback()
        finally:
            self._lock.release()

    def commit(self) -> None:
        self._committed = True

    def rollback(self) -> None:
        if self._snapshot is not None and not self._committed:
            self._store.__dict__.update(self._snapshot.__dict__)
        self._snapshot = None


class FakeUnitOfWorkFactory:
    """Callable handed to handlers; every call opens a new FakeUnitOfWork."""

    def __init__(self, lock_timeout: float = 5.0) -> None:
        self.store = FakeStore()
        self.lock = threading.Lock()
        self.lock_timeout = lock_timeout

    def __call__(self) -> FakeUnitOfWork:
        return FakeUnitOfWork(self.store, self.lock, self.lock_timeout)

    # --- Seeding helpers ------------------------------------------------------

    def add_item(self, item: CatalogItem) -> CatalogItem:
        self.store.items[item.id] = item
        return item

    def add_combination(self, combination: AttributeCombination) -> AttributeCombination:
        self.store.combinations[combination.id] = combination
        return combination

    def add_discount(self, discount: DiscountCode) -> DiscountCode:
        self.store.discounts[discount.code] = discount
        return discount


class FakeAccountDirectory(AccountDirectory):

    def __init__(self, account_ids: list[str] | None = None) -> None:
        self._ids = set(account_ids or [])

    def exists(self, account_id: str) -> bool:
        return account_id in self._ids
