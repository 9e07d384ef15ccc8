"""CLI commands for the catalog and its availability ledgers."""

from __future__ import annotations

import click

from storefront.application.add_catalog_item import AddCatalogItemHandler
from storefront.application.add_combination import AddCombinationHandler
from storefront.application.set_availability import SetAvailabilityHandler
from storefront.application.show_availability import ShowAvailabilityHandler
from storefront.application.update_price import UpdatePriceHandler
from storefront.domain.exceptions import DomainException
from storefront.infrastructure import bootstrap
from storefront.infrastructure.cli.feedback import fail, parse_ref


def _parse_attributes(pairs: tuple[str, ...]) -> dict[str, str]:
    """Parse ('color=red', 'size=M') into a dict."""
    attributes: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip() or not value.strip():
            raise click.BadParameter(f"Invalid attribute '{pair}'. Expected 'name=value'.")
        attributes[key.strip()] = value.strip()
    return attributes


@click.command("add-item")
@click.option("--name", required=True, help="Item name.")
@click.option("--price", required=True, help="Unit price.")
@click.option("--available", type=click.IntRange(min=0), default=0, help="Initial availability.")
@click.option("--threshold", type=click.IntRange(min=0), default=None, help="Low-availability threshold.")
@click.option("--id", "item_id", default=None, help="Explicit item ID.")
def catalog_add_item(
    name: str, price: str, available: int, threshold: int | None, item_id: str | None
) -> None:
    """Add an item to the catalog."""
    handler = AddCatalogItemHandler(uow_factory=bootstrap.unit_of_work_factory())

    try:
        item = handler.handle(
            name=name,
            price=price,
            available=available,
            low_availability_threshold=threshold,
            item_id=item_id,
        )
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Item '{item.name}' added as {item.ref} at {item.unit_price}.")


@click.command("add-combination")
@click.option("--item", "item_id", required=True, help="Parent item ID.")
@click.option("--attr", "attrs", multiple=True, required=True, help="Attribute as 'name=value'.")
@click.option("--available", type=click.IntRange(min=0), default=0, help="Initial availability.")
@click.option("--price", default=None, help="Own price (defaults to the item's price).")
@click.option("--id", "combination_id", default=None, help="Explicit combination ID.")
def catalog_add_combination(
    item_id: str,
    attrs: tuple[str, ...],
    available: int,
    price: str | None,
    combination_id: str | None,
) -> None:
    """Add an attribute combination with its own availability."""
    handler = AddCombinationHandler(uow_factory=bootstrap.unit_of_work_factory())

    try:
        combination = handler.handle(
            item_id=item_id,
            attributes=_parse_attributes(attrs),
            available=available,
            price=price,
            combination_id=combination_id,
        )
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Combination {combination.ref} ({combination.label()}) added.")


@click.command("set-availability")
@click.option("--ref", "raw_ref", required=True, help="'item:ID' or 'combination:ID'.")
@click.option("--quantity", required=True, type=click.IntRange(min=0), help="New available quantity.")
def catalog_set_availability(raw_ref: str, quantity: int) -> None:
    """Set the available quantity of an item or combination."""
    ref = parse_ref(raw_ref)
    handler = SetAvailabilityHandler(uow_factory=bootstrap.unit_of_work_factory())

    try:
        handler.handle(ref, quantity)
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Availability for {ref} set to {quantity}.")


@click.command("set-price")
@click.option("--id", "item_id", required=True, help="Item ID.")
@click.option("--price", required=True, help="New unit price.")
def catalog_set_price(item_id: str, price: str) -> None:
    """Change an item's price (existing orders keep their snapshot)."""
    handler = UpdatePriceHandler(uow_factory=bootstrap.unit_of_work_factory())

    try:
        handler.handle(item_id, price)
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Item '{item_id}' price updated to {price}.")


@click.command("list")
def catalog_list() -> None:
    """List items and combinations with their availability."""
    handler = ShowAvailabilityHandler(uow_factory=bootstrap.unit_of_work_factory())

    try:
        lines = handler.handle()
    except DomainException as exc:
        raise fail(exc)

    if not lines:
        click.echo("Catalog is empty.")
        return

    click.echo(f"  {'Ref':<20} {'Name':<30} {'Price':>10} {'Available':>10}")
    click.echo(f"  {'-'*73}")
    for line in lines:
        marker = "" if line.active else "  (inactive)"
        click.echo(
            f"  {line.item_ref:<20} {line.name:<30} {line.unit_price:>10} {line.available:>10}{marker}"
        )


@click.command("low")
def catalog_low() -> None:
    """Report items at or below their low-availability threshold."""
    handler = ShowAvailabilityHandler(
        uow_factory=bootstrap.unit_of_work_factory(),
        low_availability_threshold=bootstrap.settings().low_availability_threshold,
    )

    try:
        alerts = handler.low()
    except DomainException as exc:
        raise fail(exc)

    if not alerts:
        click.echo("No items are running low.")
        return

    click.echo(f"  {'Ref':<20} {'Name':<30} {'Available':>10} {'Threshold':>10}")
    click.echo(f"  {'-'*73}")
    for alert in alerts:
        click.echo(
            f"  {str(alert.item_ref):<20} {alert.name:<30} {alert.available:>10} {alert.threshold:>10}"
        )
