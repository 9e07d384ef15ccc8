"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import lru_cache

from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from storefront.domain.repository.unit_of_work import UnitOfWork
from storefront.domain.service.identity_resolver import IdentityResolver
from storefront.infrastructure.config import Settings, load_settings
from storefront.infrastructure.persistence.database import (
    create_session_factory,
    create_storefront_engine,
    init_schema,
)
from storefront.infrastructure.persistence.sql_account_directory import SqlAccountDirectory
from storefront.infrastructure.persistence.unit_of_work import SqlAlchemyUnitOfWork


@lru_cache(maxsize=1)
def settings() -> Settings:
    return load_settings()


@lru_cache(maxsize=1)
def engine() -> Engine:
    cfg = settings()
    eng = create_storefront_engine(cfg.database_url, cfg.lock_timeout)
    init_schema(eng)
    return eng


@lru_cache(maxsize=1)
def session_factory() -> sessionmaker[Session]:
    return create_session_factory(engine())


def unit_of_work_factory() -> Callable[[], UnitOfWork]:
    factory = session_factory()
    return lambda: SqlAlchemyUnitOfWork(factory)


def account_directory() -> SqlAccountDirectory:
    return SqlAccountDirectory(session_factory())


def identity_resolver() -> IdentityResolver:
    return IdentityResolver(account_directory())


def reset() -> None:
    """Forget cached settings and connections (e.g. after the environment changed)."""
    if engine.cache_info().currsize:
        engine().dispose()
    session_factory.cache_clear()
    engine.cache_clear()
    settings.cache_clear()
