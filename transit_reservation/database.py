"""Database helpers: engine setup and the scoped session provider."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Dict, Iterator, Optional, Tuple

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import ArgumentError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import Settings
from .errors import ConfigurationError, ConnectivityError, StorageError
from .models import Base

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_session_factory(
    db_url: str,
    *,
    echo: bool = False,
    connect_args: Dict[str, object] | None = None,
) -> Tuple[Engine, sessionmaker[Session]]:
    """Return an engine/session factory pair for ``db_url``."""

    if db_url.startswith("sqlite"):
        final_connect_args = {"check_same_thread": False}
        if connect_args:
            final_connect_args.update(connect_args)
    else:
        final_connect_args = connect_args or {}

    try:
        if db_url.endswith(":memory:"):
            engine = create_engine(
                db_url,
                echo=echo,
                connect_args=final_connect_args,
                poolclass=StaticPool,
            )
        else:
            engine = create_engine(db_url, echo=echo, connect_args=final_connect_args)
    except ArgumentError as exc:
        raise ConfigurationError(f"Invalid database URL '{db_url}': {exc}") from exc

    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    return engine, session_factory


def init_db(engine: Engine) -> None:
    """Create every table that does not exist yet."""

    try:
        Base.metadata.create_all(engine)
    except (OperationalError, InterfaceError) as exc:
        raise ConnectivityError(f"Cannot reach database to create schema: {exc}") from exc


class ConnectionProvider:
    """Hands out one session per repository operation and always closes it."""

    def __init__(self, session_factory: sessionmaker[Session], *, logger: Optional[logging.Logger] = None):
        self._session_factory = session_factory
        self._log = logger or logging.getLogger(__name__)

    @classmethod
    def from_settings(cls, settings: Settings, *, create_schema: bool = False) -> "ConnectionProvider":
        engine, session_factory = create_session_factory(settings.db_url, echo=settings.echo)
        if create_schema:
            init_db(engine)
        return cls(session_factory)

    @property
    def engine(self) -> Engine:
        return self._session_factory.kw["bind"]

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield a session bound to a live connection.

        Database errors escaping the block are re-raised as ``StorageError``;
        errors of this package pass through unchanged.
        """

        session = self._session_factory()
        try:
            session.connection()
        except (OperationalError, InterfaceError) as exc:
            session.close()
            raise ConnectivityError(f"Cannot acquire database connection: {exc}") from exc
        try:
            yield session
        except SQLAlchemyError as exc:
            self._log.error("Database operation failed: %s", exc)
            raise StorageError(str(exc)) from exc
        finally:
            session.close()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Like :meth:`session`, committing on success and rolling back on any error."""

        with self.session() as session:
            try:
                yield session
                session.commit()
            except Exception:
                self.rollback(session)
                raise

    def rollback(self, session: Session) -> None:
        """Roll back ``session``; a failing rollback is logged, never raised."""

        try:
            session.rollback()
        except SQLAlchemyError as exc:
            self._log.error("Rollback failed: %s", exc)
