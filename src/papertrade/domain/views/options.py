"""View models for option pricing outputs."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from papertrade.domain.models.enums import OptionType


@dataclass(frozen=True)
class Greeks:
    """
    Option sensitivities.

    Every Greek is None when it could not be computed (unknown volatility,
    expired contract, numerical failure). None means unavailable, not zero.
    Theta is per calendar day.
    """

    delta: Optional[float] = None
    gamma: Optional[float] = None
    theta: Optional[float] = None
    vega: Optional[float] = None
    implied_volatility: Optional[float] = None

    @classmethod
    def unavailable(cls, implied_volatility: Optional[float] = None) -> "Greeks":
        return cls(implied_volatility=implied_volatility)

    @property
    def is_available(self) -> bool:
        return self.delta is not None


@dataclass(frozen=True)
class OptionContractQuote:
    """Normalized option contract, rebuilt wholesale on every market-data fetch."""

    symbol: str
    underlying: str
    strike: Decimal
    expiration_date: date
    option_type: OptionType
    price: Decimal
    last_price: Decimal
    bid: Decimal
    ask: Decimal
    implied_volatility: Optional[float]
    greeks: Greeks
    volume: int = 0
    open_interest: int = 0
