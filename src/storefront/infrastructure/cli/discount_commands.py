"""CLI commands for discount codes."""

from __future__ import annotations

from datetime import datetime, timezone

import click

from storefront.application.add_discount_code import AddDiscountCodeHandler
from storefront.domain.exceptions import DomainException
from storefront.domain.model.discount import DiscountKind
from storefront.infrastructure.bootstrap import unit_of_work_factory
from storefront.infrastructure.cli.feedback import fail


def _as_utc(value: datetime | None) -> datetime | None:
    """click.DateTime yields naive datetimes; treat them as UTC."""
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


@click.command("add")
@click.option("--code", required=True, help="Code the shopper types in.")
@click.option(
    "--kind",
    type=click.Choice([k.value for k in DiscountKind], case_sensitive=False),
    required=True,
    help="Percentage of the subtotal or a fixed amount.",
)
@click.option("--value", required=True, help="Percent (0-100) or amount.")
@click.option("--starts-at", type=click.DateTime(), default=None, help="UTC start time.")
@click.option("--expires-at", type=click.DateTime(), default=None, help="UTC expiry time.")
@click.option("--usage-limit", type=int, default=None, help="Maximum total redemptions.")
@click.option("--one-per-customer", is_flag=True, default=False, help="One redemption per owner.")
@click.option("--min-order", default=None, help="Minimum subtotal required.")
@click.option("--max-discount", default=None, help="Cap on a percentage discount.")
def discount_add(
    code: str,
    kind: str,
    value: str,
    starts_at: datetime | None,
    expires_at: datetime | None,
    usage_limit: int | None,
    one_per_customer: bool,
    min_order: str | None,
    max_discount: str | None,
) -> None:
    """Create a discount code."""
    handler = AddDiscountCodeHandler(uow_factory=unit_of_work_factory())

    try:
        created = handler.handle(
            code=code,
            kind=DiscountKind(kind.lower()),
            value=value,
            starts_at=_as_utc(starts_at),
            expires_at=_as_utc(expires_at),
            usage_limit=usage_limit,
            one_per_customer=one_per_customer,
            min_order_amount=min_order,
            max_discount_amount=max_discount,
        )
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Discount '{created.code}' created ({created.kind.value} {created.value}).")
