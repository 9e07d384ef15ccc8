import click

from storefront.infrastructure import bootstrap
from storefront.infrastructure.cli.account_commands import account_add
from storefront.infrastructure.cli.catalog_commands import (
    catalog_add_combination,
    catalog_add_item,
    catalog_list,
    catalog_low,
    catalog_set_availability,
    catalog_set_price,
)
from storefront.infrastructure.cli.discount_commands import discount_add
from storefront.infrastructure.cli.order_commands import (
    order_cancel,
    order_checkout,
    order_list,
    order_pay,
    order_show,
    order_transition,
)
from storefront.infrastructure.config import ConfigurationError
from storefront.infrastructure.logging_config import configure_logging


@click.group()
def cli() -> None:
    """Storefront checkout and order lifecycle."""
    try:
        settings = bootstrap.settings()
    except ConfigurationError as exc:
        raise click.ClickException(str(exc))
    configure_logging(settings.log_level, json_output=settings.log_json)


@cli.command("init-db")
def init_db() -> None:
    """Create the database schema if it does not exist."""
    bootstrap.engine()
    click.echo("Database ready.")


@cli.group()
def order() -> None:
    """Check out and manage orders."""


@cli.group()
def catalog() -> None:
    """Manage catalog items, combinations and availability."""


@cli.group()
def discount() -> None:
    """Manage discount codes."""


@cli.group()
def account() -> None:
    """Manage the local account mirror."""


# Register subcommands
order.add_command(order_cancel)
order.add_command(order_checkout)
order.add_command(order_list)
order.add_command(order_pay)
order.add_command(order_show)
order.add_command(order_transition)
catalog.add_command(catalog_add_combination)
catalog.add_command(catalog_add_item)
catalog.add_command(catalog_list)
catalog.add_command(catalog_low)
catalog.add_command(catalog_set_availability)
catalog.add_command(catalog_set_price)
discount.add_command(discount_add)
account.add_command(account_add)
