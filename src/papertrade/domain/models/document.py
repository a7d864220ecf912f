"""Persisted portfolio document."""

from dataclasses import dataclass, field

from papertrade.domain.models.portfolio import Portfolio
from papertrade.domain.models.transaction import Transaction


@dataclass
class PortfolioDocument:
    """Unit of persistence: a portfolio and its full transaction log."""

    portfolio: Portfolio
    transactions: list[Transaction] = field(default_factory=list)
