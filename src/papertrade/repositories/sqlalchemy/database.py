"""Engine and session management for owner portfolio storage."""

from typing import Optional

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from papertrade.config.settings import get_settings

Base = declarative_base()

# Module-level database state (can be reconfigured at runtime)
_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _create_engine(database_url: str) -> Engine:
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, pool_pre_ping=True)

    # Store calls run on worker threads
    engine = create_engine(database_url, connect_args={"check_same_thread": False})
    event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def get_engine() -> Engine:
    """Get or create the engine for the configured database URL."""
    global _engine
    if _engine is None:
        _engine = _create_engine(get_settings().get_database_url())
    return _engine


def get_session_factory() -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _SessionLocal


def init_db() -> None:
    """Create the portfolio and transaction tables if missing."""
    from papertrade.repositories.sqlalchemy import orm_models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())


def configure_database(database_url: str) -> None:
    """Point the module at ``database_url`` and create its tables."""
    global _engine

    reset_database()
    _engine = _create_engine(database_url)
    init_db()


def reset_database() -> None:
    """Dispose the engine so the next use reconnects from settings."""
    global _engine, _SessionLocal

    if _engine is not None:
        _engine.dispose()

    _engine = None
    _SessionLocal = None
