"""SQLAlchemy-backed unit of work.

One Session, one database transaction.  Lock waits that run out and
serialization conflicts surface as TransactionTimeout, which callers
may retry: nothing from the failed attempt survives the rollback.
"""

from __future__ import annotations

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from storefront.domain.exceptions import TransactionTimeout
from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.infrastructure.persistence.sql_catalog_repository import SqlCatalogRepository
from storefront.infrastructure.persistence.sql_discount_repository import SqlDiscountRepository
from storefront.infrastructure.persistence.sql_order_repository import SqlOrderRepository

# lock_not_available, serialization_failure, deadlock_detected
_RETRYABLE_PGCODES = {"55P03", "40001", "40P01"}


def _is_retryable(exc: BaseException | None) -> bool:
    if not isinstance(exc, OperationalError):
        return False
    if "database is locked" in str(exc.orig):
        return True
    return getattr(exc.orig, "pgcode", None) in _RETRYABLE_PGCODES


class SqlAlchemyUnitOfWork(UnitOfWork):

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory
        self._session: Session | None = None
        self._committed = False

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        self._session = self._session_factory()
        self._committed = False
        self.catalog = SqlCatalogRepository(self._session)
        self.orders = SqlOrderRepository(self._session)
        self.discounts = SqlDiscountRepository(self._session)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self.rollback()
        finally:
            self._session.close()  # type: ignore[union-attr]
            self._session = None
        if _is_retryable(exc):
            raise TransactionTimeout("Could not acquire checkout locks in time") from exc

    def commit(self) -> None:
        try:
            self._session.commit()  # type: ignore[union-attr]
        except OperationalError as exc:
            if _is_retryable(exc):
                raise TransactionTimeout("Could not commit checkout in time") from exc
            raise
        self._committed = True

    def rollback(self) -> None:
        if self._session is not None and not self._committed:
            self._session.rollback()
