"""SQLAlchemy-backed unit of work for the incentive engine."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from salesquest.adapters.sqlalchemy.mappings import create_all_tables, start_mappers
from salesquest.adapters.sqlalchemy.migrations import upgrade_head
from salesquest.adapters.sqlalchemy.repositories import (
    SqlAlchemyCampaignRepository,
    SqlAlchemyLedgerRepository,
    SqlAlchemyNotificationSink,
    SqlAlchemyOrganizationRepository,
    SqlAlchemyRequirementRepository,
    SqlAlchemySellerRepository,
    SqlAlchemySubmissionRepository,
    SqlAlchemyTierCompletionRepository,
    SqlAlchemyTierRepository,
)
from salesquest.config import get_database_config
from salesquest.domain.ports.unit_of_work import IncentiveRepositories, RepositoryCollection

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Connection, Engine

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call salesquest.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def create_engine_for(database_uri: str) -> Engine:
    """Create an engine; SQLite engines get working SAVEPOINT support."""

    engine = create_engine(database_uri, future=True)
    if engine.dialect.name == "sqlite":
        enable_sqlite_savepoints(engine)
    return engine


def enable_sqlite_savepoints(engine: Engine) -> None:
    """Let SQLAlchemy own BEGIN on pysqlite so nested transactions work.

    pysqlite defers BEGIN on its own and breaks SAVEPOINT semantics; this is the
    recipe from the SQLAlchemy SQLite dialect documentation.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:  # pyright: ignore[reportUnusedFunction]
        _ = connection_record
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(connection: Connection) -> None:  # pyright: ignore[reportUnusedFunction]
        connection.exec_driver_sql("BEGIN")


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
    migrate: bool = True,
) -> None:
    """Initialise the SQLAlchemy engine, metadata, and session factory.

    ``migrate=False`` creates the tables straight from the mapped metadata
    instead of running Alembic, which is what throwaway test databases want.
    """

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_engine_for(database_uri or get_database_config().uri)
    start_mappers()
    if migrate:
        upgrade_head(engine=resolved_engine)
    else:
        create_all_tables(resolved_engine)

    _STATE.engine = resolved_engine
    log.debug("SQLAlchemy adapter started on %s", resolved_engine.url)


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    """Return whether the adapter has been initialised."""

    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """Generic SQLAlchemy unit of work with pluggable repository collections."""

    def __init__(self) -> None:
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self._session: Session | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        self.session = self.session_factory()
        self._repositories = self._build_repositories(self.session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self.session = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> TRepositories:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


class SqlAlchemyIncentiveUnitOfWork(BaseSqlAlchemyUnitOfWork[IncentiveRepositories]):
    """Unit of work for reconciliation, overrides and settlement."""

    def _build_repositories(self, session: Session) -> IncentiveRepositories:
        return IncentiveRepositories(
            organizations=SqlAlchemyOrganizationRepository(session),
            sellers=SqlAlchemySellerRepository(session),
            campaigns=SqlAlchemyCampaignRepository(session),
            tiers=SqlAlchemyTierRepository(session),
            requirements=SqlAlchemyRequirementRepository(session),
            submissions=SqlAlchemySubmissionRepository(session),
            tier_completions=SqlAlchemyTierCompletionRepository(session),
            ledger=SqlAlchemyLedgerRepository(session),
            notifications=SqlAlchemyNotificationSink(session),
        )


if TYPE_CHECKING:
    from salesquest.domain.ports.unit_of_work import IncentiveUnitOfWork

    _uow_check: IncentiveUnitOfWork = SqlAlchemyIncentiveUnitOfWork()
