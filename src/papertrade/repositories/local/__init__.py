"""File-backed store for anonymous local sessions."""

from papertrade.repositories.local.json_store import LocalPortfolioStore

__all__ = ["LocalPortfolioStore"]
