"""SQLAlchemy repository implementations."""

from papertrade.repositories.sqlalchemy.database import (
    get_engine,
    get_session_factory,
    init_db,
    configure_database,
    reset_database,
    Base,
)
from papertrade.repositories.sqlalchemy.portfolio_store import SqlAlchemyPortfolioStore

__all__ = [
    "get_engine",
    "get_session_factory",
    "init_db",
    "configure_database",
    "reset_database",
    "Base",
    "SqlAlchemyPortfolioStore",
]
