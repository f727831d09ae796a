"""Database configuration and transactional session management.

Every public engine operation runs inside exactly one :meth:`Database.transaction`
block: the session commits when the block exits normally and rolls back on
any exception, so a failed event never leaves partial state behind.
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator
from contextlib import AbstractContextManager, contextmanager, nullcontext

from sqlalchemy import create_engine, event, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from cauldron_trust.badges.catalog import DEFAULT_BADGES, Badge
from cauldron_trust.errors import PersistenceError
from cauldron_trust.storage.models import Base, BadgeRecord
from cauldron_trust.storage.repository import badge_to_record

logger = logging.getLogger(__name__)

_MEMORY_URLS = frozenset({"sqlite://", "sqlite:///:memory:"})


class Database:
    """Owns the SQLAlchemy engine and session factory.

    SQLite connections are switched to explicit ``BEGIN IMMEDIATE``
    transactions so that a trust row read-modify-write holds the write lock
    from its first statement, and so that SAVEPOINTs behave as documented.
    An in-memory SQLite URL shares one connection across all sessions, so
    :meth:`transaction` runs one block at a time for such stores.

    Parameters
    ----------
    url:
        SQLAlchemy database URL.
    echo:
        If True, SQL statements are logged by SQLAlchemy.

    Raises
    ------
    PersistenceError
        If SQLAlchemy rejects the URL or its driver cannot be loaded.
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        self.url = url
        self.single_connection = url in _MEMORY_URLS
        is_sqlite = url.startswith("sqlite")

        engine_kwargs: dict[str, object] = {"echo": echo}
        if is_sqlite:
            engine_kwargs["connect_args"] = {"check_same_thread": False}
        if self.single_connection:
            engine_kwargs["poolclass"] = StaticPool

        try:
            self.engine = create_engine(url, **engine_kwargs)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Cannot configure trust store {url!r}: {exc}") from exc
        if is_sqlite:
            _install_sqlite_transaction_hooks(self.engine)

        self._session_factory = sessionmaker(
            bind=self.engine,
            autoflush=False,
            expire_on_commit=False,
        )
        self._connection_lock = threading.RLock()

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def create_all(self) -> None:
        """Create all tables that do not exist yet.

        Raises
        ------
        PersistenceError
            If the store cannot be opened or the DDL fails.
        """
        try:
            with self._serialized():
                Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Cannot create trust store schema: {exc}") from exc
        logger.info("Trust store schema ready at %s", self.engine.url.render_as_string(hide_password=True))

    def drop_all(self) -> None:
        """Drop every trust store table."""
        try:
            with self._serialized():
                Base.metadata.drop_all(bind=self.engine)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Cannot drop trust store schema: {exc}") from exc

    def seed_badges(self, badges: Iterable[Badge] = DEFAULT_BADGES) -> int:
        """Insert catalog badges whose IDs are not present yet.

        Returns
        -------
        int
            Number of badges inserted. Re-running is a no-op.
        """
        with self.transaction() as session:
            existing = set(session.scalars(select(BadgeRecord.id)).all())
            created = 0
            for badge in badges:
                if badge.badge_id in existing:
                    continue
                session.add(badge_to_record(badge))
                existing.add(badge.badge_id)
                created += 1
        if created:
            logger.info("Seeded %d trust badges", created)
        return created

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Yield a session wrapped in a single commit-or-rollback transaction.

        Raises
        ------
        PersistenceError
            If any SQLAlchemy error occurs inside the block or on commit.
        """
        with self._serialized():
            session = self._session_factory()
            try:
                yield session
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                logger.warning("Transaction rolled back: %s", exc)
                raise PersistenceError(f"Trust store operation failed: {exc}") from exc
            except BaseException:
                session.rollback()
                raise
            finally:
                session.close()

    def dispose(self) -> None:
        """Close all pooled connections."""
        self.engine.dispose()

    def _serialized(self) -> AbstractContextManager[object]:
        if self.single_connection:
            return self._connection_lock
        return nullcontext()


def _install_sqlite_transaction_hooks(engine: object) -> None:
    """Let SQLAlchemy, not pysqlite, emit BEGIN so writers serialize up front."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # type: ignore[no-untyped-def]
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):  # type: ignore[no-untyped-def]
        conn.exec_driver_sql("BEGIN IMMEDIATE")
