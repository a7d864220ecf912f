"""Core utilities and shared functionality."""

from papertrade.core.timezone import (
    now_eastern,
    to_eastern,
    expiration_instant,
    EASTERN_TZ,
    MARKET_CLOSE,
)
from papertrade.core.exceptions import (
    AppError,
    ValidationError,
    NotFoundError,
    InsufficientSharesError,
    InsufficientContractsError,
    InsufficientCashError,
    PersistenceError,
    SessionNotReadyError,
    MarketDataError,
)

__all__ = [
    "now_eastern",
    "to_eastern",
    "expiration_instant",
    "EASTERN_TZ",
    "MARKET_CLOSE",
    "AppError",
    "ValidationError",
    "NotFoundError",
    "InsufficientSharesError",
    "InsufficientContractsError",
    "InsufficientCashError",
    "PersistenceError",
    "SessionNotReadyError",
    "MarketDataError",
]
