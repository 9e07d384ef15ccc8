"""Port onto the external account/authentication surface."""

from __future__ import annotations

from abc import ABC, abstractmethod


class AccountDirectory(ABC):

    @abstractmethod
    def exists(self, account_id: str) -> bool:
        """True if ``account_id`` names a registered account."""
