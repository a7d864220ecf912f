"""Market data providers module."""

from papertrade.providers.market_data_provider import MarketDataProvider
from papertrade.providers.http_provider import HttpMarketDataProvider
from papertrade.providers.stub_provider import StubMarketDataProvider

__all__ = [
    "MarketDataProvider",
    "HttpMarketDataProvider",
    "StubMarketDataProvider",
]
