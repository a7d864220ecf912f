"""Market data service for quotes and option chains."""

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from papertrade.core.timezone import now_eastern
from papertrade.domain.views import Quote
from papertrade.providers.market_data_provider import MarketDataProvider

logger = logging.getLogger(__name__)


class MarketDataService:
    """
    Service for fetching market data (quotes, option chains).

    Wraps provider with caching and graceful degradation. Quote rows are
    parsed into Quote here; option chains are returned raw for the
    ContractNormalizer.
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        cache_ttl_seconds: int = 60,
    ):
        self._provider = provider
        self._cache_ttl = cache_ttl_seconds
        self._quote_cache: dict[str, Quote] = {}
        self._cache_time: Optional[datetime] = None

    async def get_quotes(
        self, symbols: list[str], fresh_only: bool = False
    ) -> dict[str, Quote]:
        """
        Fetch quotes for symbols with caching.

        Returns dict mapping symbol -> Quote. Symbols the provider did not
        return are omitted. Uses cached data if within TTL; falls back to
        cache on provider failure. With ``fresh_only`` that fallback keeps
        only quotes younger than the TTL, so callers that settle against
        the result never see an old price.
        """
        if not symbols:
            return {}

        # Normalize symbols, keep order, drop duplicates
        symbols = list(dict.fromkeys(s.upper() for s in symbols))

        if self._is_cache_valid():
            cached_result = {
                s: self._quote_cache[s]
                for s in symbols
                if s in self._quote_cache
                and (not fresh_only or self._is_fresh(self._quote_cache[s]))
            }
            missing = [s for s in symbols if s not in cached_result]
            if not missing:
                return cached_result
        else:
            missing = symbols
            cached_result = {}

        try:
            rows = await self._provider.get_quotes(",".join(missing))
        except Exception as exc:
            logger.warning("Quote fetch failed for %s: %s", ",".join(missing), exc)
            # Graceful degradation: return whatever is in cache
            return {
                s: self._quote_cache[s]
                for s in symbols
                if s in self._quote_cache
                and (not fresh_only or self._is_fresh(self._quote_cache[s]))
            }

        new_quotes = self._parse_quotes(rows)
        self._quote_cache.update(new_quotes)
        self._cache_time = now_eastern()
        cached_result.update(new_quotes)

        absent = [s for s in missing if s not in new_quotes]
        if absent:
            logger.info("No quote returned for %s", ",".join(absent))

        return {s: cached_result[s] for s in symbols if s in cached_result}

    async def get_option_chain(self, symbol: str) -> Optional[dict[str, Any]]:
        """Fetch the raw option chain payload; None when the provider fails."""
        try:
            return await self._provider.get_option_chain(symbol.upper())
        except Exception as exc:
            logger.warning("Option chain fetch failed for %s: %s", symbol, exc)
            return None

    async def close(self) -> None:
        await self._provider.aclose()

    def _parse_quotes(self, rows: Any) -> dict[str, Quote]:
        as_of = now_eastern()
        result: dict[str, Quote] = {}
        for row in rows or []:
            if not isinstance(row, dict):
                continue
            symbol = str(row.get("symbol") or "").upper()
            price = _decimal_or_none(row.get("price"))
            if not symbol or price is None or price <= 0:
                continue
            prev_close = _decimal_or_none(row.get("previousClose")) or price
            result[symbol] = Quote(
                symbol=symbol,
                last_price=price,
                prev_close=prev_close,
                as_of=as_of,
            )
        return result

    def _is_cache_valid(self) -> bool:
        """Check if cache is within TTL."""
        if not self._cache_time:
            return False
        elapsed = (now_eastern() - self._cache_time).total_seconds()
        return elapsed < self._cache_ttl

    def _is_fresh(self, quote: Quote) -> bool:
        return (now_eastern() - quote.as_of).total_seconds() < self._cache_ttl


def _decimal_or_none(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return result if result.is_finite() else None
