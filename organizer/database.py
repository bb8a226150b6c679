"""
Database Session Management - Core database connectivity layer
"""

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import QueuePool
from typing import Generator, Optional
import logging

from organizer.core.config import settings, is_sqlite

logger = logging.getLogger(__name__)


def build_engine(url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """
    Create an engine for the given URL (defaults to settings.DATABASE_URL).
    Pool sizing and isolation level only apply to server databases; SQLite
    serialises writers on its own.
    """
    url = url or settings.DATABASE_URL
    options = {
        "echo": settings.DB_ECHO if echo is None else echo,  # Log all SQL when enabled
        "pool_pre_ping": True,  # Verify connection health before using
    }
    if is_sqlite(url):
        options["connect_args"] = {"check_same_thread": False}  # Sessions may hop threads
    else:
        options.update(
            pool_size=settings.DB_POOL_SIZE,  # Number of persistent connections
            max_overflow=settings.DB_MAX_OVERFLOW,  # Additional connections when pool is exhausted
            pool_timeout=settings.DB_POOL_TIMEOUT,  # Wait time for available connection
            isolation_level=settings.DB_ISOLATION_LEVEL,  # READ COMMITTED or stronger
        )

    new_engine = create_engine(url, **options)

    @event.listens_for(new_engine, "connect")
    def receive_connect(dbapi_conn, connection_record):
        logger.debug("🔌 New database connection established")

    @event.listens_for(new_engine, "close")
    def receive_close(dbapi_conn, connection_record):
        logger.debug("🔌 Database connection closed")

    return new_engine


engine = build_engine()

# Session factory - one session per unit of work
SessionLocal = sessionmaker(
    autocommit=False,  # Require explicit commits
    autoflush=False,   # Control when changes are flushed to database
    bind=engine,
)

# Base class for all SQLAlchemy models - provides metadata and table registry
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """
    Provide a database session for one request.
    Rolls back on error and always closes the session.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error(f"❌ Database error during request: {str(e)}", exc_info=True)
        db.rollback()  # Never leave a half-applied transaction behind
        raise
    finally:
        db.close()
        logger.debug("✅ Database session closed")


def init_db(bind: Optional[Engine] = None) -> None:
    """
    Create tables, enum types, indexes and triggers.
    Safe to run repeatedly: existing objects are left alone.
    """
    bind = bind or engine
    logger.info("🏗️  Creating database schema...")
    try:
        from organizer import models  # noqa: F401  Register models with Base
        Base.metadata.create_all(bind=bind)
        logger.info("✅ Database schema created successfully")
    except Exception as e:
        logger.error(f"❌ Failed to create database schema: {str(e)}", exc_info=True)
        raise


def drop_db(bind: Optional[Engine] = None) -> None:
    """Drop every table (and, on PostgreSQL, the enum types and trigger function)"""
    bind = bind or engine
    from organizer import models  # noqa: F401
    logger.warning("🗑️  Dropping database schema...")
    Base.metadata.drop_all(bind=bind)
    logger.info("✅ Database schema dropped")


def check_db_connection(bind: Optional[Engine] = None) -> bool:
    """
    Verify database connectivity - used by the `check` command.
    Returns True if connection successful, False otherwise.
    """
    bind = bind or engine
    try:
        with bind.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("✅ Database connection successful")
        return True
    except Exception as e:
        logger.error(f"❌ Database connection failed: {str(e)}", exc_info=True)
        return False


def table_exists(name: str, bind: Optional[Engine] = None) -> bool:
    """True when the named table is present in the connected database"""
    return inspect(bind or engine).has_table(name)


def get_pool_stats(bind: Optional[Engine] = None) -> dict:
    """
    Get current connection pool statistics.
    Only queue pools keep these counters; other pools report an empty dict.
    """
    pool = (bind or engine).pool
    if not isinstance(pool, QueuePool):
        return {}
    return {
        "pool_size": pool.size(),  # Total connections in pool
        "checked_out": pool.checkedout(),  # Currently active connections
        "overflow": pool.overflow(),  # Connections beyond pool_size
        "checked_in": pool.checkedin(),  # Idle connections in pool
    }


def close_db_connections(bind: Optional[Engine] = None) -> None:
    """Dispose of every pooled connection (called on shutdown)"""
    logger.info("🔌 Closing database connections...")
    (bind or engine).dispose()
    logger.info("✅ All database connections closed")
