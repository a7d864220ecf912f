"""Stub market data provider for offline/testing use."""

import math
import random
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any, Optional

from papertrade.core.timezone import now_eastern


# Deterministic fake prices for common symbols: (last, previous close)
_STUB_PRICES: dict[str, tuple[Decimal, Decimal]] = {
    "AAPL": (Decimal("185.50"), Decimal("184.25")),
    "GOOGL": (Decimal("142.75"), Decimal("141.50")),
    "MSFT": (Decimal("378.25"), Decimal("376.80")),
    "AMZN": (Decimal("178.50"), Decimal("177.25")),
    "TSLA": (Decimal("248.75"), Decimal("250.10")),
    "NVDA": (Decimal("485.25"), Decimal("482.50")),
    "META": (Decimal("505.50"), Decimal("502.75")),
    "SPY": (Decimal("485.25"), Decimal("484.10")),
    "QQQ": (Decimal("418.75"), Decimal("417.50")),
}

_EXPIRATION_COUNT = 4
_STRIKES_EACH_SIDE = 5
_STUB_IV = 0.30


class StubMarketDataProvider:
    """
    Stub provider with deterministic fake data for offline operation.

    Uses predefined prices for common symbols and random prices for unknown
    symbols. Option chains list weekly Friday expirations with strikes around
    the stub price, in the same grouped shape the options proxy returns.
    """

    def __init__(self, seed: int = 42, as_of: Optional[datetime] = None):
        """Initialize with optional random seed for reproducibility."""
        self._rng = random.Random(seed)
        self._as_of = as_of
        self._generated: dict[str, tuple[Decimal, Decimal]] = {}

    async def get_quotes(self, tickers: str) -> list[dict[str, Any]]:
        """Return stub quote rows for a comma-joined ticker list."""
        rows: list[dict[str, Any]] = []
        for symbol in (t.strip().upper() for t in tickers.split(",")):
            if not symbol:
                continue
            last_price, prev_close = self._prices_for(symbol)
            change = last_price - prev_close
            rows.append(
                {
                    "symbol": symbol,
                    "name": symbol,
                    "price": float(last_price),
                    "previousClose": float(prev_close),
                    "change": float(change),
                    "changesPercentage": float(change / prev_close * 100),
                }
            )
        return rows

    async def get_option_chain(self, symbol: str) -> dict[str, Any]:
        """Return a synthetic option chain around the stub price."""
        symbol = symbol.upper()
        spot = float(self._prices_for(symbol)[0])
        now = self._as_of or now_eastern()
        step = self._strike_step(spot)
        center = round(spot / step) * step

        groups = []
        for expiry in self._fridays(now):
            years = max((expiry - now.date()).days, 1) / 365
            calls, puts = [], []
            for i in range(-_STRIKES_EACH_SIDE, _STRIKES_EACH_SIDE + 1):
                strike = round(center + i * step, 2)
                time_value = spot * _STUB_IV * math.sqrt(years) * 0.4
                calls.append(self._leg(symbol, expiry, "C", strike, max(0.0, spot - strike), time_value))
                puts.append(self._leg(symbol, expiry, "P", strike, max(0.0, strike - spot), time_value))
            midnight = datetime.combine(expiry, time(0, 0), tzinfo=timezone.utc)
            groups.append(
                {
                    "expirationDate": int(midnight.timestamp()),
                    "calls": calls,
                    "puts": puts,
                }
            )

        return {
            "underlyingSymbol": symbol,
            "quote": {"regularMarketPrice": spot},
            "options": groups,
        }

    async def aclose(self) -> None:
        return None

    def _prices_for(self, symbol: str) -> tuple[Decimal, Decimal]:
        if symbol in _STUB_PRICES:
            return _STUB_PRICES[symbol]
        if symbol not in self._generated:
            # Generate deterministic random price based on symbol
            base_price = Decimal(str(50 + self._rng.random() * 200))
            last_price = base_price.quantize(Decimal("0.01"))
            change_pct = Decimal(str((self._rng.random() - 0.5) * 0.04))
            prev_close = (last_price / (1 + change_pct)).quantize(Decimal("0.01"))
            self._generated[symbol] = (last_price, prev_close)
        return self._generated[symbol]

    @staticmethod
    def _strike_step(spot: float) -> float:
        if spot < 50:
            return 1.0
        if spot < 200:
            return 2.5
        return 5.0

    @staticmethod
    def _fridays(now: datetime) -> list[date]:
        days_ahead = (4 - now.weekday()) % 7 or 7
        first = now.date() + timedelta(days=days_ahead)
        return [first + timedelta(weeks=i) for i in range(_EXPIRATION_COUNT)]

    @staticmethod
    def _leg(
        symbol: str,
        expiry: date,
        right: str,
        strike: float,
        intrinsic: float,
        time_value: float,
    ) -> dict[str, Any]:
        mid = round(intrinsic + time_value, 2)
        return {
            "contractSymbol": f"{symbol}{expiry:%y%m%d}{right}{int(round(strike * 1000)):08d}",
            "strike": strike,
            "lastPrice": mid,
            "bid": round(mid * 0.97, 2),
            "ask": round(mid * 1.03, 2),
            "impliedVolatility": _STUB_IV,
            "openInterest": 100,
            "volume": 10,
        }
