"""Repository layer - portfolio store abstractions and implementations."""

from papertrade.repositories.protocols import PortfolioStore, StoreListener
from papertrade.repositories.local import LocalPortfolioStore

__all__ = [
    "PortfolioStore",
    "StoreListener",
    "LocalPortfolioStore",
]
