"""Market data provider protocol."""

from typing import Any, Protocol


class MarketDataProvider(Protocol):
    """
    Protocol for market data providers.

    Providers return the upstream payloads untouched; parsing into domain
    types happens in MarketDataService and ContractNormalizer.
    """

    async def get_quotes(self, tickers: str) -> list[dict[str, Any]]:
        """
        Fetch quotes for a comma-joined list of tickers.

        Returns one row per ticker the upstream knew about, each with at least
        ``symbol`` and ``price``. Unknown tickers are simply absent.
        """
        ...

    async def get_option_chain(self, symbol: str) -> dict[str, Any]:
        """
        Fetch the option chain for ``symbol``.

        Returns {"underlyingSymbol", "quote": {"regularMarketPrice"},
        "options": [{"expirationDate", "calls", "puts"}]}; expirationDate may
        be a date string or epoch seconds/milliseconds.
        """
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        ...
