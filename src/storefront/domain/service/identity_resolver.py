"""Domain service: Guest/Identity Resolver.

Maps the owner token supplied by the cart surface onto exactly one
OwnerRef.  Checkout never waits on account creation: a guest session
token plus a contact email is always enough.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from storefront.domain.exceptions import OwnerResolutionError
from storefront.domain.model.contact import is_valid_email
from storefront.domain.model.owner import OwnerRef
from storefront.domain.repository.account_directory import AccountDirectory

_GUEST_TOKEN_RE = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


@dataclass(frozen=True)
class OwnerToken:
    """What the cart surface knows about the shopper.

    Exactly one of the two fields must be set.
    """

    account_id: str | None = None
    guest_session_id: str | None = None


class IdentityResolver:

    def __init__(self, accounts: AccountDirectory) -> None:
        self._accounts = accounts

    def resolve(self, token: OwnerToken, contact_email: str | None = None) -> OwnerRef:
        account_id = (token.account_id or "").strip()
        guest_id = (token.guest_session_id or "").strip()

        if account_id and guest_id:
            raise OwnerResolutionError("Owner token names both an account and a guest session")
        if not account_id and not guest_id:
            raise OwnerResolutionError("Owner token names neither an account nor a guest session")

        email = contact_email.strip().lower() if contact_email else None

        if account_id:
            if not self._accounts.exists(account_id):
                raise OwnerResolutionError(f"Unknown account '{account_id}'")
            return OwnerRef.account(account_id, email=email)

        if not _GUEST_TOKEN_RE.match(guest_id):
            raise OwnerResolutionError("Malformed guest session token")
        if not is_valid_email(email):
            raise OwnerResolutionError("Guest checkout requires a valid contact email")
        return OwnerRef.guest(guest_id, email)
