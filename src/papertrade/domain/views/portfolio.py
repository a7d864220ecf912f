"""View models for quotes and portfolio outputs."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass
class Quote:
    """Market quote data for a symbol."""

    symbol: str
    last_price: Decimal
    prev_close: Decimal
    as_of: datetime

    @property
    def change(self) -> Decimal:
        return self.last_price - self.prev_close


@dataclass
class PortfolioSummaryView:
    """Valuation snapshot of a portfolio and its transaction log."""

    cash: Decimal
    holdings_value: Decimal
    options_value: Decimal
    total_value: Decimal
    initial_value: Decimal
    total_gain: Decimal
    total_gain_percent: Optional[Decimal] = None
    realized_pnl: Decimal = field(default_factory=lambda: Decimal("0"))
    as_of: Optional[datetime] = None
