"""Application service: Commit Order use case.

Turns a validated cart into a persisted order inside one unit of work.
This is the only place that coordinates the identity resolver, the
availability ledger, the pricing resolver and the order repository.

Every failure raised here leaves storage exactly as it was: the unit of
work discards all decrements and inserts when an exception leaves its
``with`` block, so callers may always retry.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

import structlog

from storefront.application.dto import CartLineSpec, CommitResult
from storefront.domain.exceptions import (
    DiscountInvalid,
    DomainException,
    EmptyCart,
    InsufficientAvailability,
    ValidationError,
)
from storefront.domain.model.catalog import DEFAULT_LOW_AVAILABILITY_THRESHOLD, ItemRef
from storefront.domain.model.contact import ContactInfo
from storefront.domain.model.discount import DiscountCode, normalize_code
from storefront.domain.model.order import MAX_LINE_ITEMS, Order, OrderLineItem, utcnow
from storefront.domain.model.owner import OwnerRef
from storefront.domain.model.value_objects import Quantity
from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.domain.service.availability_ledger import AvailabilityLedger
from storefront.domain.service.identity_resolver import IdentityResolver, OwnerToken
from storefront.domain.service.pricing import PricingResolver

logger = structlog.get_logger(__name__)


class CommitOrderHandler:

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        identity_resolver: IdentityResolver,
        low_availability_threshold: int = DEFAULT_LOW_AVAILABILITY_THRESHOLD,
        currency: str = "USD",
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._uow_factory = uow_factory
        self._identity_resolver = identity_resolver
        self._threshold = low_availability_threshold
        self._currency = currency
        self._clock = clock

    def handle(
        self,
        owner_token: OwnerToken,
        contact: dict,
        lines: list[CartLineSpec],
        discount_code: str | None = None,
        idempotency_key: str | None = None,
    ) -> CommitResult:
        """Commit a checkout atomically.

        Steps:
        1. Validate the lines, the contact payload and the owner.
        2. Inside one unit of work: replay an earlier commit with the same
           idempotency key, resolve authoritative prices, validate the
           discount, reserve every line, price the order, insert it.
        3. Commit and return the new order id with its totals.
        """
        try:
            return self._commit(owner_token, contact, lines, discount_code, idempotency_key)
        except DomainException as exc:
            logger.info(
                "commit_rejected",
                error=type(exc).__name__,
                detail=str(exc),
                line_count=len(lines),
            )
            raise

    def _commit(
        self,
        owner_token: OwnerToken,
        contact: dict,
        lines: list[CartLineSpec],
        discount_code: str | None,
        idempotency_key: str | None,
    ) -> CommitResult:
        if not lines:
            raise EmptyCart("Cart has no line items")
        if len(lines) > MAX_LINE_ITEMS:
            raise ValidationError(f"Maximum {MAX_LINE_ITEMS} items per order")

        requests = [(self._to_ref(line), Quantity(line.quantity).value) for line in lines]
        contact_info = ContactInfo.from_payload(contact)
        owner = self._identity_resolver.resolve(owner_token, contact_info.email)
        code = normalize_code(discount_code) if discount_code and discount_code.strip() else None
        key = idempotency_key.strip() if idempotency_key and idempotency_key.strip() else None
        now = self._clock()

        with self._uow_factory() as uow:
            if key is not None:
                existing = uow.orders.get_by_idempotency_key(owner, key)
                if existing is not None:
                    logger.info("idempotent_replay", order_id=existing.id, owner=owner.key)
                    return self._result(existing, replayed=True)

            items = [
                self._snapshot(uow, ref, qty, line)
                for (ref, qty), line in zip(requests, lines)
            ]
            discount = self._load_discount(uow, code, owner, now) if code else None

            ledger = AvailabilityLedger(uow.catalog, self._threshold)
            ledger.reserve_all(requests)

            breakdown = PricingResolver(self._currency).price(items, discount)
            order = Order.place(
                owner=owner,
                contact=contact_info,
                items=items,
                subtotal=breakdown.subtotal,
                discount_amount=breakdown.discount_amount,
                total=breakdown.total,
                discount_code_id=discount.id if discount else None,
                discount_code=discount.code if discount else None,
                idempotency_key=key,
                now=now,
            )
            uow.orders.add(order)

            if discount is not None:
                redeemed = uow.discounts.redeem(
                    discount.id, owner, order.id, breakdown.discount_amount.amount  # type: ignore[arg-type]
                )
                if not redeemed:
                    raise DiscountInvalid(discount.code, "usage_limit")

            uow.commit()

        logger.info(
            "order_committed",
            order_id=order.id,
            owner=owner.key,
            line_count=len(items),
            subtotal=str(order.subtotal.amount),
            discount=str(order.discount_amount.amount),
            total=str(order.total.amount),
        )
        return self._result(order)

    # --- Helpers --------------------------------------------------------------

    @staticmethod
    def _to_ref(line: CartLineSpec) -> ItemRef:
        has_item = bool(line.item_id)
        has_combination = bool(line.combination_id)
        if has_item == has_combination:
            raise ValidationError(
                "Each line must reference exactly one of a catalog item or a combination"
            )
        if has_combination:
            return ItemRef.combination(line.combination_id)  # type: ignore[arg-type]
        return ItemRef.item(line.item_id)  # type: ignore[arg-type]

    @staticmethod
    def _snapshot(uow: UnitOfWork, ref: ItemRef, qty: int, line: CartLineSpec) -> OrderLineItem:
        """Read the authoritative price for ``ref`` and freeze it on a line."""
        attributes: dict[str, str] = {}
        if ref.is_combination:
            combination = uow.catalog.get_combination(ref.id)
            parent = uow.catalog.get_item(combination.item_id) if combination else None
            if combination is None or parent is None:
                raise InsufficientAvailability(ref, qty, 0)
            unit_price = combination.price_for(parent)
            name = parent.name
            attributes = dict(combination.attributes)
        else:
            item = uow.catalog.get_item(ref.id)
            if item is None:
                raise InsufficientAvailability(ref, qty, 0)
            unit_price = item.unit_price
            name = item.name

        if line.display_price is not None and line.display_price != unit_price.amount:
            logger.warning(
                "price_hint_mismatch",
                item_ref=str(ref),
                shown=str(line.display_price),
                charged=str(unit_price.amount),
            )

        return OrderLineItem(
            item_ref=ref,
            item_name=name,
            quantity=Quantity(qty),
            unit_price=unit_price,
            attributes=attributes,
        )

    @staticmethod
    def _load_discount(
        uow: UnitOfWork, code: str, owner: OwnerRef, now: datetime
    ) -> DiscountCode:
        discount = uow.discounts.get_by_code(code)
        if discount is None:
            raise DiscountInvalid(code, "unknown")
        used = discount.one_per_customer and uow.discounts.has_been_used_by(discount.id, owner)
        discount.ensure_redeemable(now, already_used_by_owner=used)
        return discount

    @staticmethod
    def _result(order: Order, replayed: bool = False) -> CommitResult:
        return CommitResult(
            order_id=order.id,  # type: ignore[arg-type]
            subtotal=order.subtotal.amount,
            discount_amount=order.discount_amount.amount,
            total=order.total.amount,
            replayed=replayed,
        )
