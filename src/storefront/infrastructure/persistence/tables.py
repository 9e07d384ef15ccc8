"""SQLAlchemy table mappings.

Money is stored as exact decimal strings and timestamps as naive UTC, so
the same schema behaves identically on SQLite and server databases.
The CHECK constraints restate the core invariants at the storage level.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator


class DecimalString(TypeDecorator):
    """Decimal stored as its exact string form."""

    impl = String(40)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(Decimal(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value)


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetime stored without an offset."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("Refusing to store a naive datetime")
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    pass


class CatalogItemRow(Base):
    __tablename__ = "catalog_items"
    __table_args__ = (
        CheckConstraint("available_quantity >= 0", name="ck_catalog_items_available"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    unit_price: Mapped[Decimal] = mapped_column(DecimalString)
    currency: Mapped[str] = mapped_column(String(3), default="USD")
    available_quantity: Mapped[int] = mapped_column(Integer, default=0)
    low_availability_threshold: Mapped[int | None] = mapped_column(Integer, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True)


class AttributeCombinationRow(Base):
    __tablename__ = "attribute_combinations"
    __table_args__ = (
        CheckConstraint("available_quantity >= 0", name="ck_combinations_available"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    item_id: Mapped[str] = mapped_column(ForeignKey("catalog_items.id"), index=True)
    attributes: Mapped[dict] = mapped_column(JSON)
    available_quantity: Mapped[int] = mapped_column(Integer, default=0)
    unit_price: Mapped[Decimal | None] = mapped_column(DecimalString, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True)


class DiscountCodeRow(Base):
    __tablename__ = "discount_codes"
    __table_args__ = (
        CheckConstraint(
            "usage_limit IS NULL OR usage_count <= usage_limit",
            name="ck_discount_codes_usage_within_limit",
        ),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    code: Mapped[str] = mapped_column(String(64), unique=True)
    kind: Mapped[str] = mapped_column(String(16))
    value: Mapped[Decimal] = mapped_column(DecimalString)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    starts_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    usage_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    usage_count: Mapped[int] = mapped_column(Integer, default=0)
    one_per_customer: Mapped[bool] = mapped_column(Boolean, default=False)
    min_order_amount: Mapped[Decimal | None] = mapped_column(DecimalString, nullable=True)
    max_discount_amount: Mapped[Decimal | None] = mapped_column(DecimalString, nullable=True)


class OrderRow(Base):
    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint("owner_key", "idempotency_key", name="uq_orders_idempotency"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_key: Mapped[str] = mapped_column(String(160), index=True)
    owner_kind: Mapped[str] = mapped_column(String(16))
    account_id: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    guest_token: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    contact_email: Mapped[str] = mapped_column(String(255), index=True)
    contact: Mapped[dict] = mapped_column(JSON)
    currency: Mapped[str] = mapped_column(String(3), default="USD")
    subtotal: Mapped[Decimal] = mapped_column(DecimalString)
    discount_code_id: Mapped[str | None] = mapped_column(
        ForeignKey("discount_codes.id"), nullable=True
    )
    discount_code: Mapped[str | None] = mapped_column(String(64), nullable=True)
    discount_amount: Mapped[Decimal] = mapped_column(DecimalString)
    total: Mapped[Decimal] = mapped_column(DecimalString)
    status: Mapped[str] = mapped_column(String(16), index=True)
    payment_status: Mapped[str] = mapped_column(String(16))
    idempotency_key: Mapped[str | None] = mapped_column(String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, index=True)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime)

    items: Mapped[list[OrderLineItemRow]] = relationship(
        back_populates="order",
        order_by="OrderLineItemRow.position",
        lazy="selectin",
    )
    history: Mapped[list[OrderStatusChangeRow]] = relationship(
        back_populates="order",
        order_by="OrderStatusChangeRow.id",
        lazy="selectin",
    )


class OrderLineItemRow(Base):
    __tablename__ = "order_line_items"
    __table_args__ = (
        CheckConstraint(
            "(catalog_item_id IS NULL) <> (combination_id IS NULL)",
            name="ck_order_line_items_one_reference",
        ),
        CheckConstraint("quantity > 0", name="ck_order_line_items_quantity"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"), index=True)
    position: Mapped[int] = mapped_column(Integer)
    catalog_item_id: Mapped[str | None] = mapped_column(
        ForeignKey("catalog_items.id"), nullable=True
    )
    combination_id: Mapped[str | None] = mapped_column(
        ForeignKey("attribute_combinations.id"), nullable=True
    )
    item_name: Mapped[str] = mapped_column(String(255))
    attributes: Mapped[dict] = mapped_column(JSON, default=dict)
    quantity: Mapped[int] = mapped_column(Integer)
    unit_price: Mapped[Decimal] = mapped_column(DecimalString)

    order: Mapped[OrderRow] = relationship(back_populates="items")


class OrderStatusChangeRow(Base):
    __tablename__ = "order_status_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"), index=True)
    dimension: Mapped[str] = mapped_column(String(16))
    from_value: Mapped[str | None] = mapped_column(String(16), nullable=True)
    to_value: Mapped[str] = mapped_column(String(16))
    actor: Mapped[str] = mapped_column(String(16))
    at: Mapped[datetime] = mapped_column(UTCDateTime)

    order: Mapped[OrderRow] = relationship(back_populates="history")


class DiscountUsageRow(Base):
    __tablename__ = "discount_usages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    discount_code_id: Mapped[str] = mapped_column(ForeignKey("discount_codes.id"), index=True)
    owner_key: Mapped[str] = mapped_column(String(160), index=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"))
    amount: Mapped[Decimal] = mapped_column(DecimalString)


class AccountRow(Base):
    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), index=True)
