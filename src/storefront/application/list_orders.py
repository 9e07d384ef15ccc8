"""Application service: List Orders use case (query).

Account history is keyed by account id only.  Guest history needs the
guest session token and the email captured at checkout, so a guest
order never shows up under an account that is later registered with
the same email.
"""

from __future__ import annotations

from collections.abc import Callable

from storefront.application.dto import OrderDTO
from storefront.domain.exceptions import ValidationError
from storefront.domain.model.contact import is_valid_email
from storefront.domain.repository.order_repository import OrderFilters
from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.domain.service.identity_resolver import IdentityResolver, OwnerToken


class ListOrdersHandler:

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        identity_resolver: IdentityResolver,
    ) -> None:
        self._uow_factory = uow_factory
        self._identity_resolver = identity_resolver

    def handle(
        self,
        owner_token: OwnerToken,
        contact_email: str | None = None,
        filters: OrderFilters | None = None,
    ) -> list[OrderDTO]:
        """Order history for one owner, newest first."""
        owner = self._identity_resolver.resolve(owner_token, contact_email)
        with self._uow_factory() as uow:
            orders = uow.orders.list_for_owner(owner, filters or OrderFilters())
        return [OrderDTO.from_order(order) for order in orders]

    def by_email(self, email: str, filters: OrderFilters | None = None) -> list[OrderDTO]:
        """Support lookup of every order placed with a contact email."""
        if not is_valid_email(email):
            raise ValidationError(f"Invalid email address: {email!r}")
        with self._uow_factory() as uow:
            orders = uow.orders.list_by_email(email.strip().lower(), filters or OrderFilters())
        return [OrderDTO.from_order(order) for order in orders]
