"""SQLAlchemy implementation of OrderRepository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.domain.exceptions import EntityNotFoundError
from storefront.domain.model.catalog import ItemRef
from storefront.domain.model.contact import ContactInfo
from storefront.domain.model.order import (
    Actor,
    Order,
    OrderLineItem,
    OrderStatus,
    PaymentStatus,
    StatusChange,
)
from storefront.domain.model.owner import OwnerKind, OwnerRef
from storefront.domain.model.value_objects import Money, Quantity
from storefront.domain.repository.order_repository import OrderFilters, OrderRepository
from storefront.infrastructure.persistence.tables import (
    OrderLineItemRow,
    OrderRow,
    OrderStatusChangeRow,
)


class SqlOrderRepository(OrderRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    # --- OrderRepository interface --------------------------------------------

    def add(self, order: Order) -> None:
        row = self._to_row(order)
        self._session.add(row)
        self._session.flush()
        order.id = row.id

    def get_by_id(self, order_id: int) -> Order | None:
        row = self._session.get(OrderRow, order_id, populate_existing=True)
        return self._to_domain(row) if row is not None else None

    def get_by_idempotency_key(self, owner: OwnerRef, key: str) -> Order | None:
        row = self._session.execute(
            select(OrderRow).where(
                OrderRow.owner_key == owner.key,
                OrderRow.idempotency_key == key,
            )
        ).scalar_one_or_none()
        return self._to_domain(row) if row is not None else None

    def list_for_owner(self, owner: OwnerRef, filters: OrderFilters) -> list[Order]:
        stmt = select(OrderRow).where(OrderRow.owner_key == owner.key)
        if owner.is_guest:
            stmt = stmt.where(OrderRow.contact_email == owner.email)
        return self._list(stmt, filters)

    def list_by_email(self, email: str, filters: OrderFilters) -> list[Order]:
        return self._list(select(OrderRow).where(OrderRow.contact_email == email), filters)

    def save(self, order: Order) -> None:
        row = self._session.get(OrderRow, order.id)
        if row is None:
            raise EntityNotFoundError(f"Order #{order.id} not found")
        row.status = order.status.value
        row.payment_status = order.payment_status.value
        row.updated_at = order.updated_at
        # History is append-only
        for change in order.history[len(row.history):]:
            row.history.append(self._change_to_row(change))
        self._session.flush()

    # --- Queries --------------------------------------------------------------

    def _list(self, stmt, filters: OrderFilters) -> list[Order]:
        if filters.status is not None:
            stmt = stmt.where(OrderRow.status == filters.status.value)
        if filters.payment_status is not None:
            stmt = stmt.where(OrderRow.payment_status == filters.payment_status.value)
        if filters.created_from is not None:
            stmt = stmt.where(OrderRow.created_at >= filters.created_from)
        if filters.created_to is not None:
            stmt = stmt.where(OrderRow.created_at <= filters.created_to)
        stmt = stmt.order_by(OrderRow.created_at.desc(), OrderRow.id.desc())
        if filters.offset:
            stmt = stmt.offset(filters.offset)
        if filters.limit is not None:
            stmt = stmt.limit(filters.limit)
        rows = self._session.execute(stmt.execution_options(populate_existing=True)).scalars()
        return [self._to_domain(row) for row in rows]

    # --- Serialization --------------------------------------------------------

    def _to_row(self, order: Order) -> OrderRow:
        return OrderRow(
            owner_key=order.owner.key,
            owner_kind=order.owner.kind.value,
            account_id=order.owner.account_id,
            guest_token=order.owner.guest_token,
            contact_email=order.contact.email,
            contact=order.contact.to_dict(),
            currency=order.total.currency,
            subtotal=order.subtotal.amount,
            discount_code_id=order.discount_code_id,
            discount_code=order.discount_code,
            discount_amount=order.discount_amount.amount,
            total=order.total.amount,
            status=order.status.value,
            payment_status=order.payment_status.value,
            idempotency_key=order.idempotency_key,
            created_at=order.created_at,
            updated_at=order.updated_at,
            items=[
                OrderLineItemRow(
                    position=position,
                    catalog_item_id=None if item.item_ref.is_combination else item.item_ref.id,
                    combination_id=item.item_ref.id if item.item_ref.is_combination else None,
                    item_name=item.item_name,
                    attributes=dict(item.attributes),
                    quantity=item.quantity.value,
                    unit_price=item.unit_price.amount,
                )
                for position, item in enumerate(order.items)
            ],
            history=[self._change_to_row(change) for change in order.history],
        )

    @staticmethod
    def _change_to_row(change: StatusChange) -> OrderStatusChangeRow:
        return OrderStatusChangeRow(
            dimension=change.dimension,
            from_value=change.from_value,
            to_value=change.to_value,
            actor=change.actor.value,
            at=change.at,
        )

    @staticmethod
    def _to_domain(row: OrderRow) -> Order:
        kind = OwnerKind(row.owner_kind)
        if kind is OwnerKind.GUEST:
            owner = OwnerRef.guest(row.guest_token, row.contact_email)  # type: ignore[arg-type]
        else:
            owner = OwnerRef.account(row.account_id, email=row.contact_email)  # type: ignore[arg-type]

        items = [
            OrderLineItem(
                item_ref=(
                    ItemRef.combination(i.combination_id)
                    if i.combination_id is not None
                    else ItemRef.item(i.catalog_item_id)  # type: ignore[arg-type]
                ),
                item_name=i.item_name,
                quantity=Quantity(i.quantity),
                unit_price=Money(i.unit_price, row.currency),
                attributes=dict(i.attributes or {}),
            )
            for i in row.items
        ]
        return Order(
            id=row.id,
            owner=owner,
            contact=ContactInfo(**row.contact),
            items=items,
            subtotal=Money(row.subtotal, row.currency),
            discount_amount=Money(row.discount_amount, row.currency),
            total=Money(row.total, row.currency),
            discount_code_id=row.discount_code_id,
            discount_code=row.discount_code,
            status=OrderStatus(row.status),
            payment_status=PaymentStatus(row.payment_status),
            idempotency_key=row.idempotency_key,
            created_at=row.created_at,
            updated_at=row.updated_at,
            history=[
                StatusChange(
                    dimension=h.dimension,
                    from_value=h.from_value,
                    to_value=h.to_value,
                    actor=Actor(h.actor),
                    at=h.at,
                )
                for h in row.history
            ],
        )
