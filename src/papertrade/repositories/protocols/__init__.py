"""Repository protocol definitions (interfaces)."""

from papertrade.repositories.protocols.portfolio_store import PortfolioStore, StoreListener

__all__ = [
    "PortfolioStore",
    "StoreListener",
]
