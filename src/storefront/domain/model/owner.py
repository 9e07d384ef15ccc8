"""Who a cart or order belongs to."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class OwnerKind(Enum):
    ACCOUNT = "account"
    GUEST = "guest"


@dataclass(frozen=True)
class OwnerRef:
    """Either an authenticated account or a guest session plus email.

    Guest orders stay keyed by their session token; an account created
    later with the same email does not see them.
    """

    kind: OwnerKind
    account_id: str | None = None
    guest_token: str | None = None
    email: str | None = None

    @staticmethod
    def account(account_id: str, email: str | None = None) -> OwnerRef:
        return OwnerRef(OwnerKind.ACCOUNT, account_id=account_id, email=email)

    @staticmethod
    def guest(guest_token: str, email: str) -> OwnerRef:
        return OwnerRef(OwnerKind.GUEST, guest_token=guest_token, email=email)

    @property
    def is_guest(self) -> bool:
        return self.kind is OwnerKind.GUEST

    @property
    def key(self) -> str:
        """Stable identifier used for per-customer bookkeeping."""
        if self.is_guest:
            return f"guest:{self.guest_token}"
        return f"account:{self.account_id}"

    def same_owner(self, other: OwnerRef) -> bool:
        return self.key == other.key
