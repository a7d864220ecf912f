"""HTTP market data provider (FMP quotes + options proxy)."""

import logging
from typing import Any, Optional

import httpx

from papertrade.core.exceptions import MarketDataError

logger = logging.getLogger(__name__)


class HttpMarketDataProvider:
    """
    Fetches quotes from a Financial Modeling Prep compatible endpoint and
    option chains from the options proxy.
    """

    def __init__(
        self,
        quote_base_url: str,
        options_proxy_url: str,
        api_key: Optional[str] = None,
        timeout_seconds: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._quote_base_url = quote_base_url.rstrip("/")
        self._options_proxy_url = options_proxy_url
        self._api_key = api_key
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def get_quotes(self, tickers: str) -> list[dict[str, Any]]:
        if not tickers:
            return []
        params = {"apikey": self._api_key} if self._api_key else None
        data = await self._get_json(f"{self._quote_base_url}/quote/{tickers}", params)
        if not isinstance(data, list):
            raise MarketDataError(f"Unexpected quote payload for {tickers}")
        return data

    async def get_option_chain(self, symbol: str) -> dict[str, Any]:
        data = await self._get_json(self._options_proxy_url, {"symbol": symbol.upper()})
        if not isinstance(data, dict):
            raise MarketDataError(f"Unexpected option chain payload for {symbol}")
        return data

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get_json(self, url: str, params: Optional[dict[str, str]]) -> Any:
        try:
            response = await self._client.get(url, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            raise MarketDataError(
                f"{url} failed with status {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise MarketDataError(f"{url} request failed: {exc}") from exc
