"""Database engine and transaction helpers using SQLModel."""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import exc as sa_exc
from sqlalchemy import event, text
from sqlalchemy.engine import Engine
from sqlmodel import Session, create_engine

from recount_service.config import DatabaseSettings, Settings, TransactionBudget
from recount_service.errors import TransactionTimeoutError
from recount_service.logging import logger
from recount_service.models import metadata

# query_canceled (statement_timeout), lock_not_available (lock_timeout)
_TIMEOUT_SQLSTATES = frozenset({"57014", "55P03"})


def _enable_sqlite_transactions(engine: Engine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINTs nest inside the transaction."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # noqa: ARG001
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(connection):
        mode = connection.get_execution_options().get("sqlite_begin", "DEFERRED")
        connection.exec_driver_sql(f"BEGIN {mode}")


def build_engine(database: DatabaseSettings) -> Engine:
    if database.url.startswith("sqlite"):
        engine = create_engine(
            database.url,
            echo=database.echo,
            connect_args={"check_same_thread": False},
        )
        _enable_sqlite_transactions(engine)
        return engine
    return create_engine(
        database.url,
        echo=database.echo,
        pool_size=database.pool_size,
        pool_timeout=database.pool_timeout,
        pool_pre_ping=True,
    )


def _is_budget_cancellation(error: sa_exc.DBAPIError) -> bool:
    orig = error.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return sqlstate in _TIMEOUT_SQLSTATES


class Store:
    """Handle on the shared relational store.

    One instance lives for the whole process; it is created at startup,
    passed to the services that need it and disposed at shutdown.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._reader = engine
        self._writer = engine
        if engine.dialect.name == "postgresql":
            # every read sees one snapshot
            self._reader = engine.execution_options(
                isolation_level="REPEATABLE READ", postgresql_readonly=True
            )
        elif engine.dialect.name == "sqlite":
            # no row locks; writers take the database write lock when they begin
            self._writer = engine.execution_options(sqlite_begin="IMMEDIATE")

    @classmethod
    def from_settings(cls, settings: Settings) -> "Store":
        return cls(build_engine(settings.database))

    def create_schema(self) -> None:
        metadata.create_all(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Read-only session. Nothing done here is committed."""

        session = Session(self._reader, expire_on_commit=False)
        try:
            yield session
        except sa_exc.TimeoutError as exc:
            raise TransactionTimeoutError("Could not acquire a database connection") from exc
        finally:
            session.close()

    @contextmanager
    def transaction(self, budget: TransactionBudget, *, operation: str = "transaction") -> Iterator[Session]:
        """Run the body as one atomic transaction bounded by ``budget``.

        Commits when the body returns, rolls back on any exception. A body
        that overruns ``budget.timeout_ms`` is rolled back instead of
        committed.
        """

        started = time.monotonic()
        session = Session(self._writer, expire_on_commit=False)
        try:
            self._apply_budget(session, budget)
            yield session
            elapsed_ms = (time.monotonic() - started) * 1000
            if elapsed_ms > budget.timeout_ms:
                logger.warning(
                    "Transaction exceeded its budget, rolling back",
                    operation=operation,
                    elapsed_ms=round(elapsed_ms),
                    timeout_ms=budget.timeout_ms,
                )
                raise TransactionTimeoutError(
                    f"{operation} did not finish within {budget.timeout_ms} ms"
                )
            session.commit()
        except sa_exc.TimeoutError as exc:
            session.rollback()
            logger.warning("No database connection available", operation=operation)
            raise TransactionTimeoutError(f"{operation} could not acquire a database connection") from exc
        except sa_exc.OperationalError as exc:
            session.rollback()
            if _is_budget_cancellation(exc):
                logger.warning("Transaction cancelled by the database", operation=operation, error=str(exc.orig))
                raise TransactionTimeoutError(f"{operation} did not finish within its time budget") from exc
            raise
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def _apply_budget(self, session: Session, budget: TransactionBudget) -> None:
        if self.engine.dialect.name != "postgresql":
            return
        session.exec(text(f"SET LOCAL lock_timeout = {int(budget.max_wait_ms)}"))
        session.exec(text(f"SET LOCAL statement_timeout = {int(budget.timeout_ms)}"))


__all__ = ["Store", "build_engine"]
