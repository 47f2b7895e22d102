"""
Database connection and session management for the SPOG Inventory Tracker.

This module provides:
- Database engine creation and configuration
- Session factory and transactional session_scope()
- Database initialization (create tables) and reset
- SQLite foreign key enforcement and WAL mode
"""

from typing import Optional
from contextlib import contextmanager
import logging

from sqlalchemy import create_engine, event, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from spog.utils.config import get_config
from spog.models.base import Base

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None
_SessionFactory: Optional[sessionmaker] = None

EXPECTED_TABLES = (
    "locations",
    "inventory_items",
    "consumption_records",
    "users",
    "user_sessions",
    "user_permissions",
)


@event.listens_for(Engine, "connect")
def _set_sqlite_pragma(dbapi_connection, connection_record):
    """
    Set SQLite pragmas on every new connection.

    Other database backends are left untouched.
    """
    if type(dbapi_connection).__module__.split(".")[0] not in ("sqlite3", "pysqlite2"):
        return

    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


def _import_models() -> None:
    """Import all models so they are registered with Base.metadata."""
    from spog.models import consumption_record, inventory_item, location, user  # noqa: F401


def create_database_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """
    Build the SQLAlchemy engine for a database URL.

    Args:
        database_url: Optional database URL. If None, uses config default.
        echo: If True, log all SQL statements

    Returns:
        Engine (SQLite URLs get thread-safe connect args)
    """
    if database_url is None:
        database_url = get_config().database_url

    logger.info(f"Connecting to {database_url}")

    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo, pool_pre_ping=True)

    if ":memory:" in database_url or "mode=memory" in database_url:
        # In-memory databases live on a single shared connection
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


def init_database(engine: Optional[Engine] = None) -> None:
    """
    Create all tables that don't exist yet.

    Safe to call multiple times.

    Args:
        engine: Optional engine to use. If None, uses global engine.
    """
    if engine is None:
        engine = get_engine()

    logger.info("Creating missing SPOG tables")
    _import_models()
    Base.metadata.create_all(engine)
    logger.info("SPOG tables ready")


def get_engine(force_recreate: bool = False) -> Engine:
    """
    Get the global database engine (created on first use).

    Args:
        force_recreate: If True, recreate the engine even if one exists
    """
    global _engine

    if _engine is None or force_recreate:
        _engine = create_database_engine()

    return _engine


def get_session_factory() -> sessionmaker:
    """
    Get the global session factory.

    Tests replace this function to point every service at an in-memory
    database.
    """
    global _SessionFactory

    if _SessionFactory is None:
        _SessionFactory = sessionmaker(bind=get_engine(), expire_on_commit=False)

    return _SessionFactory


def get_session() -> Session:
    """Create a new database session."""
    session_factory = get_session_factory()
    return session_factory()


@contextmanager
def session_scope():
    """
    Provide a transactional scope for database operations.

    - Creates a new session
    - Commits on success
    - Rolls back on exception
    - Always closes the session

    Yields:
        Database session

    Example:
        with session_scope() as session:
            location = Location(name="Hangar 1 Store")
            session.add(location)
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def verify_database() -> bool:
    """
    Verify that the database is accessible and has the expected tables.

    Returns:
        True if every expected table exists, False otherwise
    """
    try:
        tables = set(inspect(get_engine()).get_table_names())
    except Exception as e:
        logger.error(f"Could not inspect database tables: {e}")
        return False
    return all(table in tables for table in EXPECTED_TABLES)


def reset_database(confirm: bool = False) -> None:
    """
    Drop all tables and recreate them.

    Every inventory item, consumption record and account is deleted.

    Args:
        confirm: Must be True to actually reset

    Raises:
        ValueError: If confirm is not True
    """
    if not confirm:
        raise ValueError("reset_database() deletes every row; pass confirm=True to proceed")

    logger.warning("Resetting database: inventory, consumption and user data will be lost")

    engine = get_engine()
    _import_models()
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    logger.info("Database reset complete")


def close_connections() -> None:
    """Dispose of the engine and forget the session factory."""
    global _engine, _SessionFactory

    _SessionFactory = None

    if _engine is not None:
        _engine.dispose()
        _engine = None

    logger.info("Database engine disposed")


def initialize_app_database() -> None:
    """
    Initialize the application database.

    Creates the data directory, the database file and the tables if they
    don't exist yet.
    """
    config = get_config()
    config.ensure_directories()

    if not config.database_exists():
        logger.info(f"Creating new database at: {config.database_path}")
    else:
        logger.info(f"Using existing database at: {config.database_url}")

    init_database(get_engine())

    if verify_database():
        logger.info("Database ready: all expected tables present")
    else:
        logger.warning(f"Database is missing one of {', '.join(EXPECTED_TABLES)}")
