"""CLI commands for the local account mirror."""

from __future__ import annotations

import click

from storefront.domain.exceptions import DomainException
from storefront.infrastructure.bootstrap import account_directory
from storefront.infrastructure.cli.feedback import fail


@click.command("add")
@click.option("--id", "account_id", required=True, help="Account ID from the auth provider.")
@click.option("--email", required=True, help="Account email address.")
def account_add(account_id: str, email: str) -> None:
    """Register an account so it can check out."""
    try:
        account_directory().register(account_id, email)
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Account '{account_id.strip()}' registered.")
