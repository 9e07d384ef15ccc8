"""Application service: Transition Order use case.

Drives the order lifecycle state machine for administrators, the payment
collaborator and customers.  A transition and its side effects commit
together: cancelling an order returns its quantities to the ledgers they
were reserved from inside the same unit of work.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

import structlog

from storefront.application.dto import OrderDTO
from storefront.domain.exceptions import (
    EntityNotFoundError,
    OwnerResolutionError,
    ValidationError,
)
from storefront.domain.model.order import Actor, Order, OrderStatus, PaymentStatus, utcnow
from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.domain.service.availability_ledger import AvailabilityLedger
from storefront.domain.service.identity_resolver import IdentityResolver, OwnerToken

logger = structlog.get_logger(__name__)


class TransitionOrderHandler:

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        identity_resolver: IdentityResolver | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._uow_factory = uow_factory
        self._identity_resolver = identity_resolver
        self._clock = clock

    def handle(
        self,
        order_id: int,
        new_status: OrderStatus | None = None,
        new_payment_status: PaymentStatus | None = None,
        actor: Actor = Actor.ADMIN,
        owner_token: OwnerToken | None = None,
        contact_email: str | None = None,
    ) -> OrderDTO:
        """Apply exactly one status or payment-status change.

        Raises IllegalStateTransition if the state machine rejects it.
        Customers must pass their owner token; an order they do not own
        is reported as not found.
        """
        if (new_status is None) == (new_payment_status is None):
            raise ValidationError("Specify exactly one of a new status or a new payment status")

        now = self._clock()
        with self._uow_factory() as uow:
            order = uow.orders.get_by_id(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")
            if actor is Actor.CUSTOMER:
                self._ensure_owner(order, owner_token, contact_email)

            if new_status is not None:
                change = order.transition_status(new_status, actor, now)
                if new_status is OrderStatus.CANCELLED:
                    ledger = AvailabilityLedger(uow.catalog)
                    for item in order.items:
                        ledger.restock(item.item_ref, item.quantity.value)
            else:
                change = order.transition_payment(new_payment_status, actor, now)  # type: ignore[arg-type]

            uow.orders.save(order)
            uow.commit()

        logger.info(
            "order_transitioned",
            order_id=order_id,
            dimension=change.dimension,
            from_value=change.from_value,
            to_value=change.to_value,
            actor=actor.value,
        )
        return OrderDTO.from_order(order)

    def confirm_payment(self, order_id: int) -> OrderDTO:
        """Entry point for the external payment-confirmation signal."""
        return self.handle(order_id, new_payment_status=PaymentStatus.PAID, actor=Actor.PAYMENT)

    def cancel_by_customer(
        self, order_id: int, owner_token: OwnerToken, contact_email: str | None = None
    ) -> OrderDTO:
        return self.handle(
            order_id,
            new_status=OrderStatus.CANCELLED,
            actor=Actor.CUSTOMER,
            owner_token=owner_token,
            contact_email=contact_email,
        )

    def _ensure_owner(
        self, order: Order, owner_token: OwnerToken | None, contact_email: str | None
    ) -> None:
        if owner_token is None or self._identity_resolver is None:
            raise OwnerResolutionError("Customer transitions require an owner token")
        owner = self._identity_resolver.resolve(
            owner_token, contact_email or order.contact.email
        )
        if not owner.same_owner(order.owner):
            raise EntityNotFoundError(f"Order #{order.id} not found")
