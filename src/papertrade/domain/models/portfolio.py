"""Portfolio aggregate and its holdings."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from papertrade.domain.models.enums import OptionType

# Each option contract controls 100 shares of the underlying.
CONTRACT_MULTIPLIER = 100


def intrinsic_value(option_type: OptionType, underlying_price: Decimal, strike: Decimal) -> Decimal:
    """Immediate exercise value per share, ignoring time value."""
    if option_type == OptionType.CALL:
        return max(Decimal("0"), underlying_price - strike)
    return max(Decimal("0"), strike - underlying_price)


@dataclass
class Holding:
    """Stock position with weighted-average cost basis."""

    ticker: str
    shares: Decimal
    purchase_price: Decimal
    current_price: Decimal
    name: str = ""

    @property
    def market_value(self) -> Decimal:
        return self.shares * self.current_price

    @property
    def cost_basis(self) -> Decimal:
        return self.shares * self.purchase_price


@dataclass
class OptionHolding:
    """
    Long option position.

    Premiums are quoted per share, i.e. per 1/100 of a contract.
    A holding whose contract count reaches zero is removed, never kept.
    """

    symbol: str
    underlying: str
    contracts: int
    purchase_premium: Decimal
    current_premium: Decimal
    option_type: OptionType
    strike: Decimal
    expiration_date: date

    def __post_init__(self) -> None:
        if isinstance(self.option_type, str):
            self.option_type = OptionType(self.option_type)

    @property
    def shares_controlled(self) -> int:
        return self.contracts * CONTRACT_MULTIPLIER

    @property
    def market_value(self) -> Decimal:
        return self.current_premium * self.shares_controlled

    def intrinsic_value(self, underlying_price: Decimal) -> Decimal:
        """Immediate exercise value per share at ``underlying_price``."""
        return intrinsic_value(self.option_type, underlying_price, self.strike)


@dataclass
class Portfolio:
    """
    Single-owner portfolio aggregate.

    Services never edit an instance in place; every operation returns a new
    Portfolio built with dataclasses.replace.
    """

    cash: Decimal
    holdings: list[Holding] = field(default_factory=list)
    option_holdings: list[OptionHolding] = field(default_factory=list)
    initial_value: Decimal = field(default_factory=lambda: Decimal("0"))

    @classmethod
    def new(cls, initial_cash: Decimal) -> "Portfolio":
        """Create an empty portfolio funded with ``initial_cash``."""
        return cls(cash=initial_cash, initial_value=initial_cash)

    def find_holding(self, ticker: str) -> Optional[Holding]:
        return next((h for h in self.holdings if h.ticker == ticker), None)

    def find_option(self, symbol: str) -> Optional[OptionHolding]:
        return next((o for o in self.option_holdings if o.symbol == symbol), None)

    @property
    def tickers(self) -> list[str]:
        """Stock tickers and option underlyings, deduplicated in first-seen order."""
        seen: dict[str, None] = {}
        for h in self.holdings:
            seen.setdefault(h.ticker, None)
        for o in self.option_holdings:
            seen.setdefault(o.underlying, None)
        return list(seen)

    @property
    def total_value(self) -> Decimal:
        holdings_value = sum((h.market_value for h in self.holdings), Decimal("0"))
        options_value = sum((o.market_value for o in self.option_holdings), Decimal("0"))
        return self.cash + holdings_value + options_value
