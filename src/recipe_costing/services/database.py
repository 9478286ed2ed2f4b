"""
Database connection and session management for the Recipe Costing engine.

This module provides:
- Database engine creation and configuration
- A Database object owning one engine and its session factory
- Table creation, verification and reset
- Foreign key enforcement and WAL mode for SQLite

There is no process-wide database handle: callers construct a Database,
call init(), pass it to the services that need it and close() it when done.

Example:
    db = Database("sqlite:///:memory:")
    db.init()
    with db.session_scope() as session:
        session.add(Ingredient(name="Plain Flour", base_unit="g"))
    db.close()
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine, event, inspect
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..models.base import Base
from ..utils.config import get_config

logger = logging.getLogger(__name__)

EXPECTED_TABLES = ("ingredients", "purchase_items", "recipes", "recipe_line_items")


@event.listens_for(Engine, "connect")
def _set_sqlite_pragma(dbapi_connection, connection_record):
    """
    Set SQLite pragmas on connection.

    Enables foreign key constraints and WAL mode for every new connection.
    """
    if not isinstance(dbapi_connection, sqlite3.Connection):
        return

    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


def _is_memory_url(database_url: str) -> bool:
    return ":memory:" in database_url or "mode=memory" in database_url


def create_database_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """
    Create and configure the database engine.

    Args:
        database_url: Optional database URL. If None, uses config default.
        echo: If True, log all SQL statements (useful for debugging)

    Returns:
        Configured SQLAlchemy Engine
    """
    if database_url is None:
        database_url = get_config().database_url

    logger.info(f"Creating database engine: {database_url}")

    if _is_memory_url(database_url):
        # A single shared connection keeps the in-memory database alive
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_engine(
        database_url,
        echo=echo,
        connect_args={"check_same_thread": False, "timeout": 30},
    )


class Database:
    """
    Owned database handle: one engine plus its session factory.

    Attributes:
        database_url: SQLAlchemy URL this handle connects to
    """

    def __init__(self, database_url: Optional[str] = None, echo: bool = False):
        """
        Args:
            database_url: Database URL. If None, uses the configured URL.
            echo: If True, log all SQL statements
        """
        self.database_url = database_url or get_config().database_url
        self._echo = echo
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    def __repr__(self) -> str:
        state = "initialized" if self.is_initialized else "closed"
        return f"Database(url='{self.database_url}', {state})"

    def __enter__(self) -> "Database":
        self.init()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        """The engine; raises RuntimeError before init()."""
        if self._engine is None:
            raise RuntimeError("Database is not initialized; call init() first")
        return self._engine

    def init(self) -> None:
        """
        Create the engine and all tables.

        Safe to call more than once; existing tables are left alone.
        """
        if self._engine is None:
            self._ensure_parent_directory()
            self._engine = create_database_engine(self.database_url, echo=self._echo)
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)

        logger.info("Initializing database tables")
        Base.metadata.create_all(self._engine)
        logger.info("Database tables initialized successfully")

    def _ensure_parent_directory(self) -> None:
        if _is_memory_url(self.database_url):
            return
        url = make_url(self.database_url)
        if url.get_backend_name() == "sqlite" and url.database:
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    def get_session(self) -> Session:
        """
        Create a new database session.

        The caller owns the session and must commit/rollback and close it.
        Prefer session_scope().
        """
        if self._session_factory is None:
            raise RuntimeError("Database is not initialized; call init() first")
        return self._session_factory()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """
        Provide a transactional scope for database operations.

        - Creates a new session
        - Commits on success
        - Rolls back on exception
        - Always closes the session

        Yields:
            Database session
        """
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def verify(self) -> bool:
        """
        Verify that the database is accessible and has the costing tables.

        Returns:
            True if database is valid, False otherwise
        """
        try:
            tables = inspect(self.engine).get_table_names()
            return all(table in tables for table in EXPECTED_TABLES)
        except Exception as e:
            logger.error(f"Database verification failed: {e}")
            return False

    def reset(self, confirm: bool = False) -> None:
        """
        Drop all tables and recreate them.

        WARNING: This will delete all data!

        Args:
            confirm: Must be True to actually reset. Safety check.

        Raises:
            ValueError: If confirm is not True
        """
        if not confirm:
            raise ValueError("Must pass confirm=True to reset database. This will delete all data!")

        logger.warning("RESETTING DATABASE - ALL DATA WILL BE LOST")

        Base.metadata.drop_all(self.engine)
        logger.info("All tables dropped")

        Base.metadata.create_all(self.engine)
        logger.info("Tables recreated")

    def close(self) -> None:
        """Dispose of the engine and its connections."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Database connections closed")
