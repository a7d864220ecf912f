"""Periodic price refresh and expiration settlement."""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from papertrade.core.exceptions import PersistenceError
from papertrade.core.timezone import EASTERN_TZ, now_eastern
from papertrade.domain.models import Portfolio, Transaction
from papertrade.services.contract_normalizer import ContractNormalizer
from papertrade.services.market_data_service import MarketDataService
from papertrade.services.portfolio_session import PortfolioSession
from papertrade.services.settlement_engine import SettlementEngine

logger = logging.getLogger(__name__)

JOB_ID = "price-refresh"


class RefreshStatus(str, Enum):
    """Outcome of one refresh tick."""

    SKIPPED_NOT_LOADED = "skipped_not_loaded"
    SKIPPED_IN_FLIGHT = "skipped_in_flight"
    UNCHANGED = "unchanged"
    PERSISTED = "persisted"
    ABANDONED = "abandoned"


@dataclass
class RefreshResult:
    status: RefreshStatus
    reason: str
    prices_updated: int = 0
    settled: list[Transaction] = field(default_factory=list)
    deferred: list[str] = field(default_factory=list)
    rejected: list[str] = field(default_factory=list)


class PriceRefreshScheduler:
    """
    Drives price refresh ticks for the active portfolio session.

    A tick fetches quotes and option chains for the stored symbols, then
    re-reads the stored portfolio right before it applies prices that moved
    by more than ``price_epsilon``, settles expired options and writes the
    result only if something changed. Settlement only sees quotes younger
    than the market data cache TTL.
    Ticks never overlap: a tick that finds another in flight is skipped.

    ``session_provider`` returns the currently open session; a tick whose
    session was replaced while it ran discards its result.
    """

    def __init__(
        self,
        session_provider: Callable[[], Optional[PortfolioSession]],
        market_data: MarketDataService,
        normalizer: ContractNormalizer,
        settlement_engine: SettlementEngine,
        price_epsilon: Decimal = Decimal("0.0001"),
        interval_seconds: int = 300,
        persist_attempts: int = 3,
        clock: Callable[[], datetime] = now_eastern,
    ):
        self._session_provider = session_provider
        self._market_data = market_data
        self._normalizer = normalizer
        self._settlement = settlement_engine
        self._epsilon = price_epsilon
        self._interval = interval_seconds
        self._persist_attempts = max(1, persist_attempts)
        self._clock = clock
        self._lock = asyncio.Lock()
        self._scheduler: Optional[AsyncIOScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Schedule periodic ticks. Must be called with a running event loop."""
        if self.running:
            return
        self._scheduler = AsyncIOScheduler(timezone=EASTERN_TZ)
        self._scheduler.add_job(
            self._scheduled_tick,
            trigger=IntervalTrigger(seconds=self._interval, timezone=EASTERN_TZ),
            id=JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self._scheduler.start()
        logger.info("Price refresh scheduled every %ds", self._interval)

    def shutdown(self) -> None:
        if self.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Price refresh scheduler shut down")
        self._scheduler = None

    async def on_visibility_regained(self) -> RefreshResult:
        """Tick immediately when the UI becomes visible again."""
        return await self.refresh(reason="visibility")

    async def _scheduled_tick(self) -> None:
        try:
            await self.refresh(reason="interval")
        except PersistenceError as exc:
            # Next tick starts again from the stored state
            logger.error("Scheduled price refresh failed to persist: %s", exc.message)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    async def refresh(self, reason: str = "manual") -> RefreshResult:
        """
        Run one tick.

        Raises PersistenceError when the computed state cannot be written
        after ``persist_attempts`` tries.
        """
        session = self._session_provider()
        if session is None or not session.is_loaded:
            logger.debug("Skipping %s refresh: session not loaded", reason)
            return RefreshResult(RefreshStatus.SKIPPED_NOT_LOADED, reason)
        if self._lock.locked():
            logger.debug("Skipping %s refresh: previous tick still running", reason)
            return RefreshResult(RefreshStatus.SKIPPED_IN_FLIGHT, reason)

        async with self._lock:
            return await self._tick(session, reason)

    async def _tick(self, session: PortfolioSession, reason: str) -> RefreshResult:
        # This read only decides what to fetch
        snapshot = (await session.read_latest()).portfolio
        tickers = snapshot.tickers
        if not tickers:
            return RefreshResult(RefreshStatus.UNCHANGED, reason)

        now = self._clock()
        quotes = await self._market_data.get_quotes(tickers, fresh_only=True)
        underlying_prices = {symbol: quote.last_price for symbol, quote in quotes.items()}
        premiums = await self._fetch_premiums(snapshot, underlying_prices, now)

        # Trades may have landed during the fetches; compute from the stored state
        document = await session.read_latest()
        priced, prices_updated = self._apply_prices(document.portfolio, underlying_prices, premiums)
        settlement = self._settlement.settle_expired(
            priced, document.transactions, underlying_prices, now
        )

        result = RefreshResult(
            status=RefreshStatus.UNCHANGED,
            reason=reason,
            prices_updated=prices_updated,
            settled=settlement.settled,
            deferred=settlement.deferred,
            rejected=settlement.rejected,
        )
        if prices_updated == 0 and not settlement.changed:
            return result

        if not await self._persist(session, settlement.portfolio, settlement.transactions):
            result.status = RefreshStatus.ABANDONED
            return result

        logger.info(
            "Refresh (%s): %d prices updated, %d options settled",
            reason,
            prices_updated,
            len(settlement.settled),
        )
        result.status = RefreshStatus.PERSISTED
        return result

    async def _fetch_premiums(
        self,
        portfolio: Portfolio,
        underlying_prices: dict[str, Decimal],
        now: datetime,
    ) -> dict[str, Decimal]:
        """Current tradable premium per option symbol, from each underlying's chain."""
        underlyings = list(dict.fromkeys(o.underlying for o in portfolio.option_holdings))
        if not underlyings:
            return {}

        payloads = await asyncio.gather(
            *(self._market_data.get_option_chain(symbol) for symbol in underlyings)
        )
        held = {o.symbol for o in portfolio.option_holdings}
        premiums: dict[str, Decimal] = {}
        for symbol, payload in zip(underlyings, payloads):
            if not payload:
                continue
            contracts = self._normalizer.normalize_chain(
                payload, underlying_prices.get(symbol), now=now
            )
            for contract in contracts:
                if contract.symbol in held and contract.price > 0:
                    premiums[contract.symbol] = contract.price
        return premiums

    def _apply_prices(
        self,
        portfolio: Portfolio,
        underlying_prices: dict[str, Decimal],
        premiums: dict[str, Decimal],
    ) -> tuple[Portfolio, int]:
        updated = 0

        holdings = []
        for holding in portfolio.holdings:
            price = underlying_prices.get(holding.ticker)
            if price is not None and abs(price - holding.current_price) > self._epsilon:
                holding = replace(holding, current_price=price)
                updated += 1
            holdings.append(holding)

        options = []
        for option in portfolio.option_holdings:
            premium = premiums.get(option.symbol)
            if premium is not None and abs(premium - option.current_premium) > self._epsilon:
                option = replace(option, current_premium=premium)
                updated += 1
            options.append(option)

        if not updated:
            return portfolio, 0
        return replace(portfolio, holdings=holdings, option_holdings=options), updated

    async def _persist(
        self,
        session: PortfolioSession,
        portfolio: Portfolio,
        transactions: Sequence[Transaction],
    ) -> bool:
        """Write the tick's result; False if the session was switched first."""
        last_error: Optional[PersistenceError] = None
        for attempt in range(1, self._persist_attempts + 1):
            if self._session_provider() is not session:
                logger.warning("Session changed during refresh; discarding result")
                return False
            try:
                await session.write(portfolio, transactions)
                return True
            except PersistenceError as exc:
                last_error = exc
                logger.warning(
                    "Persisting refresh result failed (attempt %d/%d): %s",
                    attempt,
                    self._persist_attempts,
                    exc.message,
                )
        raise last_error
