"""Shared helpers for turning domain errors into CLI output."""

from __future__ import annotations

import click

from storefront.domain.exceptions import (
    DiscountInvalid,
    DomainException,
    EntityNotFoundError,
    ValidationError,
    user_message,
)
from storefront.domain.model.catalog import ItemRef, RefKind


def fail(exc: DomainException) -> click.ClickException:
    """Build the ClickException shown for a domain error.

    Validation and lookup messages are written for people and shown as is;
    everything else is reduced to its fixed user-facing reason.
    """
    message = user_message(exc)
    if isinstance(exc, (ValidationError, EntityNotFoundError)):
        message = str(exc)
    elif isinstance(exc, DiscountInvalid):
        message = f"{message} ({exc.reason.replace('_', ' ')})"
    return click.ClickException(message)


def parse_ref(raw: str) -> ItemRef:
    """Parse 'item:ID' or 'combination:ID'."""
    kind, sep, ref_id = raw.strip().partition(":")
    if not sep:
        raise click.BadParameter(
            f"Invalid reference '{raw}'. Expected 'item:ID' or 'combination:ID'."
        )
    try:
        return ItemRef(RefKind(kind.strip().lower()), ref_id.strip())
    except (ValueError, DomainException):
        raise click.BadParameter(
            f"Invalid reference '{raw}'. Expected 'item:ID' or 'combination:ID'."
        )
