"""Engine and session factory construction.

SQLite runs every unit of work under ``BEGIN IMMEDIATE`` so the write
lock is taken up front and concurrent checkouts serialize; the driver's
busy timeout bounds how long a unit of work waits for it.  Other
engines run at SERIALIZABLE isolation with a bounded lock wait where
the dialect supports one.
"""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from storefront.infrastructure.persistence.tables import Base


def create_storefront_engine(database_url: str, lock_timeout: float = 5.0) -> Engine:
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(
            url,
            connect_args={"timeout": lock_timeout, "check_same_thread": False},
        )

        @event.listens_for(engine, "connect")
        def _on_connect(dbapi_connection, connection_record):
            # Let SQLAlchemy, not the driver, decide when transactions begin.
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _on_begin(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine

    engine = create_engine(url, isolation_level="SERIALIZABLE", pool_pre_ping=True)

    if url.get_backend_name() == "postgresql":

        @event.listens_for(engine, "begin")
        def _on_pg_begin(conn):
            conn.exec_driver_sql(f"SET LOCAL lock_timeout = '{int(lock_timeout * 1000)}ms'")

    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_schema(engine: Engine) -> None:
    Base.metadata.create_all(engine)
