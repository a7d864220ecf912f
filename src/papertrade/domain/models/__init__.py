"""Domain models package."""

from papertrade.domain.models.enums import TransactionType, OptionType
from papertrade.domain.models.portfolio import (
    CONTRACT_MULTIPLIER,
    Holding,
    OptionHolding,
    Portfolio,
    intrinsic_value,
)
from papertrade.domain.models.transaction import Transaction
from papertrade.domain.models.document import PortfolioDocument

__all__ = [
    "TransactionType",
    "OptionType",
    "CONTRACT_MULTIPLIER",
    "Holding",
    "OptionHolding",
    "Portfolio",
    "Transaction",
    "PortfolioDocument",
    "intrinsic_value",
]
