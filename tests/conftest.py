from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from salesquest.adapters.sqlalchemy import create_all_tables, start_mappers
from salesquest.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyIncentiveUnitOfWork,
    create_engine_for,
    shutdown,
    startup,
)

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine_for("sqlite+pysqlite:///:memory:")
    start_mappers()
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, future=True)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyIncentiveUnitOfWork]]:
    startup(engine=sqlite_engine, force=True, migrate=False)

    def factory() -> SqlAlchemyIncentiveUnitOfWork:
        return SqlAlchemyIncentiveUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()
