"""CLI commands for checkout and the Order lifecycle."""

from __future__ import annotations

from decimal import Decimal

import click

from storefront.application.commit_order import CommitOrderHandler
from storefront.application.dto import CartLineSpec, OrderDTO
from storefront.application.get_order import GetOrderHandler
from storefront.application.list_orders import ListOrdersHandler
from storefront.application.transition_order import TransitionOrderHandler
from storefront.domain.exceptions import DomainException
from storefront.domain.model.order import Actor, OrderStatus, PaymentStatus
from storefront.domain.repository.order_repository import OrderFilters
from storefront.domain.service.identity_resolver import OwnerToken
from storefront.infrastructure import bootstrap
from storefront.infrastructure.cli.feedback import fail, parse_ref


def _parse_lines(raw: str) -> list[CartLineSpec]:
    """Parse 'item:1:2,combination:1-2:1' into CartLineSpec list."""
    lines: list[CartLineSpec] = []
    for entry in raw.split(","):
        entry = entry.strip()
        if entry.count(":") < 2:
            raise click.BadParameter(
                f"Invalid line format '{entry}'. Expected 'item:ID:Qty' or 'combination:ID:Qty'."
            )
        ref_str, qty_str = entry.rsplit(":", 1)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(f"Invalid quantity '{qty_str}' for '{ref_str}'.")
        ref = parse_ref(ref_str)
        if ref.is_combination:
            lines.append(CartLineSpec(quantity=qty, combination_id=ref.id))
        else:
            lines.append(CartLineSpec(quantity=qty, item_id=ref.id))
    return lines


def _money(amount: Decimal) -> str:
    return f"${amount:,.2f}"


def _owner_token(account: str | None, guest_session: str | None) -> OwnerToken:
    return OwnerToken(account_id=account, guest_session_id=guest_session)


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order #{dto.id}  (status={dto.status}, payment={dto.payment_status})")
    click.echo(f"Owner:    {dto.owner}{'  [guest]' if dto.is_guest else ''}")
    click.echo(f"Contact:  {dto.contact['full_name']} <{dto.contact['email']}>")
    click.echo(f"Created:  {dto.created_at.isoformat()}")
    click.echo()
    click.echo(f"  {'Item':<30} {'Qty':>5} {'Price':>10} {'Total':>12}")
    click.echo(f"  {'-'*60}")
    for item in dto.items:
        label = item.item_name
        if item.attributes:
            label += " (" + ", ".join(f"{k}={v}" for k, v in sorted(item.attributes.items())) + ")"
        click.echo(
            f"  {label:<30} {item.quantity:>5} {_money(item.unit_price):>10} {_money(item.line_total):>12}"
        )
    click.echo(f"  {'-'*60}")
    click.echo(f"  {'Subtotal':<46} {_money(dto.subtotal):>13}")
    if dto.discount_code:
        click.echo(f"  {'Discount ' + dto.discount_code:<46} {'-' + _money(dto.discount_amount):>13}")
    click.echo(f"  {'Order Total':<46} {_money(dto.total):>13}")

    if dto.history:
        click.echo()
        click.echo("History:")
        for change in dto.history:
            click.echo(
                f"  {change.at.isoformat()}  {change.dimension}: "
                f"{change.from_value or '-'} -> {change.to_value}  ({change.actor})"
            )


@click.command("checkout")
@click.option("--account", default=None, help="Account ID of a signed-in shopper.")
@click.option("--guest-session", default=None, help="Guest session token.")
@click.option("--items", required=True, help="Lines as 'item:ID:Qty,combination:ID:Qty'.")
@click.option("--name", "full_name", required=True, help="Contact full name.")
@click.option("--email", required=True, help="Contact email.")
@click.option("--street", required=True)
@click.option("--city", required=True)
@click.option("--state", required=True)
@click.option("--postal-code", required=True)
@click.option("--country", required=True)
@click.option("--phone", default=None)
@click.option("--discount", "discount_code", default=None, help="Discount code to apply.")
@click.option("--idempotency-key", default=None, help="Client-supplied retry key.")
def order_checkout(
    account: str | None,
    guest_session: str | None,
    items: str,
    full_name: str,
    email: str,
    street: str,
    city: str,
    state: str,
    postal_code: str,
    country: str,
    phone: str | None,
    discount_code: str | None,
    idempotency_key: str | None,
) -> None:
    """Commit a cart as a new order."""
    lines = _parse_lines(items)
    contact = {
        "full_name": full_name,
        "email": email,
        "street": street,
        "city": city,
        "state": state,
        "postal_code": postal_code,
        "country": country,
        "phone": phone,
    }

    handler = CommitOrderHandler(
        uow_factory=bootstrap.unit_of_work_factory(),
        identity_resolver=bootstrap.identity_resolver(),
        low_availability_threshold=bootstrap.settings().low_availability_threshold,
    )

    try:
        result = handler.handle(
            owner_token=_owner_token(account, guest_session),
            contact=contact,
            lines=lines,
            discount_code=discount_code,
            idempotency_key=idempotency_key,
        )
    except DomainException as exc:
        raise fail(exc)

    if result.replayed:
        click.echo(f"Order #{result.order_id} already committed with this idempotency key.")
    else:
        click.echo(f"Order #{result.order_id} committed.")
    click.echo(f"  Subtotal: {_money(result.subtotal)}")
    if result.discount_amount:
        click.echo(f"  Discount: -{_money(result.discount_amount)}")
    click.echo(f"  Total:    {_money(result.total)}")


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
def order_show(order_id: int) -> None:
    """Show details of an existing order."""
    handler = GetOrderHandler(uow_factory=bootstrap.unit_of_work_factory())

    try:
        dto = handler.handle(order_id)
    except DomainException as exc:
        raise fail(exc)

    _display_order(dto)


@click.command("list")
@click.option("--account", default=None, help="List orders of this account.")
@click.option("--guest-session", default=None, help="List orders of this guest session.")
@click.option("--email", default=None, help="Contact email (required for guests).")
@click.option(
    "--status",
    type=click.Choice([s.value for s in OrderStatus]),
    default=None,
)
@click.option(
    "--payment-status",
    type=click.Choice([s.value for s in PaymentStatus]),
    default=None,
)
@click.option("--limit", type=click.IntRange(min=1), default=None)
@click.option("--offset", type=click.IntRange(min=0), default=0)
def order_list(
    account: str | None,
    guest_session: str | None,
    email: str | None,
    status: str | None,
    payment_status: str | None,
    limit: int | None,
    offset: int,
) -> None:
    """List orders, newest first.

    Without --account/--guest-session, --email lists every order placed
    with that contact email (support lookup).
    """
    filters = OrderFilters(
        status=OrderStatus(status) if status else None,
        payment_status=PaymentStatus(payment_status) if payment_status else None,
        limit=limit,
        offset=offset,
    )
    handler = ListOrdersHandler(
        uow_factory=bootstrap.unit_of_work_factory(),
        identity_resolver=bootstrap.identity_resolver(),
    )

    try:
        if account or guest_session:
            orders = handler.handle(_owner_token(account, guest_session), email, filters)
        elif email:
            orders = handler.by_email(email, filters)
        else:
            raise click.UsageError("Give --account, --guest-session or --email.")
    except DomainException as exc:
        raise fail(exc)

    if not orders:
        click.echo("No orders found.")
        return

    click.echo(f"  {'ID':>6} {'Created':<26} {'Status':<11} {'Payment':<9} {'Total':>12}")
    click.echo(f"  {'-'*68}")
    for dto in orders:
        click.echo(
            f"  {dto.id:>6} {dto.created_at.isoformat(timespec='seconds'):<26} "
            f"{dto.status:<11} {dto.payment_status:<9} {_money(dto.total):>12}"
        )


@click.command("transition")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to transition.")
@click.option("--status", type=click.Choice([s.value for s in OrderStatus]), default=None)
@click.option(
    "--payment-status",
    type=click.Choice([s.value for s in PaymentStatus]),
    default=None,
)
def order_transition(order_id: int, status: str | None, payment_status: str | None) -> None:
    """Move an order through its lifecycle as an administrator."""
    handler = TransitionOrderHandler(uow_factory=bootstrap.unit_of_work_factory())

    try:
        dto = handler.handle(
            order_id,
            new_status=OrderStatus(status) if status else None,
            new_payment_status=PaymentStatus(payment_status) if payment_status else None,
            actor=Actor.ADMIN,
        )
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Order #{dto.id} is now {dto.status} / {dto.payment_status}.")


@click.command("pay")
@click.option("--id", "order_id", required=True, type=int, help="Order ID that was paid.")
def order_pay(order_id: int) -> None:
    """Record a payment confirmation for an order."""
    handler = TransitionOrderHandler(uow_factory=bootstrap.unit_of_work_factory())

    try:
        handler.confirm_payment(order_id)
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Order #{order_id} marked as paid.")


@click.command("cancel")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to cancel.")
@click.option("--account", default=None, help="Account ID of the owner.")
@click.option("--guest-session", default=None, help="Guest session token of the owner.")
@click.option("--email", default=None, help="Contact email used at checkout.")
def order_cancel(
    order_id: int, account: str | None, guest_session: str | None, email: str | None
) -> None:
    """Cancel a pending order on behalf of its owner (restocks items)."""
    handler = TransitionOrderHandler(
        uow_factory=bootstrap.unit_of_work_factory(),
        identity_resolver=bootstrap.identity_resolver(),
    )

    try:
        handler.cancel_by_customer(order_id, _owner_token(account, guest_session), email)
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Order #{order_id} cancelled.")
