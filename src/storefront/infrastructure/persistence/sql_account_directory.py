"""Account directory backed by the ``accounts`` table.

Accounts are owned by the external authentication surface; this table is
the local mirror the checkout core consults.
"""

from __future__ import annotations

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from storefront.domain.exceptions import TransactionTimeout, ValidationError
from storefront.domain.model.contact import is_valid_email
from storefront.domain.repository.account_directory import AccountDirectory
from storefront.infrastructure.persistence.tables import AccountRow


class SqlAccountDirectory(AccountDirectory):

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def exists(self, account_id: str) -> bool:
        try:
            with self._session_factory() as session:
                return session.get(AccountRow, account_id) is not None
        except OperationalError as exc:
            raise TransactionTimeout("Account lookup timed out") from exc

    def register(self, account_id: str, email: str) -> None:
        account_id = (account_id or "").strip()
        if not account_id:
            raise ValidationError("Account ID is required")
        if not is_valid_email(email):
            raise ValidationError(f"Invalid email address: {email!r}")
        with self._session_factory() as session:
            if session.get(AccountRow, account_id) is not None:
                raise ValidationError(f"Account '{account_id}' already exists")
            session.add(AccountRow(id=account_id, email=email.strip().lower()))
            session.commit()
