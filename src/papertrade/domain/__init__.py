"""Domain layer - pure business models with no external dependencies."""

from papertrade.domain.models import (
    CONTRACT_MULTIPLIER,
    Holding,
    OptionHolding,
    OptionType,
    Portfolio,
    PortfolioDocument,
    Transaction,
    TransactionType,
)

__all__ = [
    "CONTRACT_MULTIPLIER",
    "Holding",
    "OptionHolding",
    "OptionType",
    "Portfolio",
    "PortfolioDocument",
    "Transaction",
    "TransactionType",
]
