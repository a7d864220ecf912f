"""
Pytest configuration and fixtures for papertrade tests.

This module provides:
- In-memory SQLite database fixtures
- Deterministic async market data providers
- An in-memory portfolio store with injectable save failures
- Factory helpers for holdings, option holdings and chain payloads
- Time helpers for Eastern timezone
- FastAPI test client wired to a test AppContext
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

import pytest
from sqlalchemy import create_engine, StaticPool
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from papertrade.main import app
from papertrade.api.deps import get_context
from papertrade.app_context import AppContext
from papertrade.config.settings import Settings, reset_settings
from papertrade.core.exceptions import MarketDataError, PersistenceError
from papertrade.core.timezone import EASTERN_TZ
from papertrade.domain.models import (
    Holding,
    OptionHolding,
    OptionType,
    Portfolio,
    PortfolioDocument,
    Transaction,
)
from papertrade.repositories.listeners import ListenerRegistry
from papertrade.repositories.sqlalchemy.database import Base
# Import ORM models to register them with Base before creating tables
from papertrade.repositories.sqlalchemy import orm_models  # noqa: F401
from papertrade.services import (
    ContractNormalizer,
    GreeksCalculator,
    MarketDataService,
    PortfolioService,
    PortfolioSession,
    SettlementEngine,
)


# =============================================================================
# TIMEZONE HELPERS
# =============================================================================


def eastern_datetime(
    year: int,
    month: int,
    day: int,
    hour: int = 10,
    minute: int = 0,
    second: int = 0,
) -> datetime:
    """Create a localized datetime in US/Eastern timezone."""
    return EASTERN_TZ.localize(datetime(year, month, day, hour, minute, second))


@pytest.fixture
def fixed_now() -> datetime:
    """Fixed 'now' timestamp for deterministic tests."""
    return eastern_datetime(2024, 6, 14, 14, 30, 0)


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="function")
def test_engine():
    """Create test database engine with shared in-memory SQLite."""
    # Reset settings for clean state
    reset_settings()

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def test_session_factory(test_engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


# =============================================================================
# MARKET DATA FIXTURES
# =============================================================================


class DeterministicMarketProvider:
    """
    Deterministic async market data provider for testing.

    Quotes come from ``quotes`` (symbol -> (last, previous close)); option
    chains from ``chains`` (symbol -> raw payload). Calls are recorded.
    """

    FIXED_QUOTES = {
        "AAPL": (Decimal("185.50"), Decimal("184.25")),
        "GOOGL": (Decimal("142.75"), Decimal("141.50")),
        "MSFT": (Decimal("378.25"), Decimal("376.80")),
        "TSLA": (Decimal("248.75"), Decimal("250.10")),
        "SPY": (Decimal("485.25"), Decimal("484.10")),
    }

    def __init__(
        self,
        quotes: Optional[dict[str, tuple[Decimal, Decimal]]] = None,
        chains: Optional[dict[str, dict[str, Any]]] = None,
    ):
        self.quotes = dict(self.FIXED_QUOTES if quotes is None else quotes)
        self.chains = dict(chains or {})
        self.quote_calls: list[str] = []
        self.chain_calls: list[str] = []
        # Awaited inside get_quotes; lets tests pause or interleave a tick
        self.before_quotes: Optional[Callable[[], Awaitable[None]]] = None
        self.closed = False

    def set_price(self, symbol: str, last: str, prev_close: Optional[str] = None) -> None:
        self.quotes[symbol] = (Decimal(last), Decimal(prev_close or last))

    async def get_quotes(self, tickers: str) -> list[dict[str, Any]]:
        self.quote_calls.append(tickers)
        if self.before_quotes is not None:
            await self.before_quotes()
        rows = []
        for symbol in tickers.split(","):
            if symbol in self.quotes:
                last_price, prev_close = self.quotes[symbol]
                rows.append(
                    {
                        "symbol": symbol,
                        "price": float(last_price),
                        "previousClose": float(prev_close),
                    }
                )
        return rows

    async def get_option_chain(self, symbol: str) -> dict[str, Any]:
        self.chain_calls.append(symbol)
        if symbol not in self.chains:
            raise MarketDataError(f"No chain for {symbol}")
        return self.chains[symbol]

    async def aclose(self) -> None:
        self.closed = True


class FailingMarketProvider:
    """Market provider that always raises."""

    async def get_quotes(self, tickers: str) -> list[dict[str, Any]]:
        raise MarketDataError("Network unavailable")

    async def get_option_chain(self, symbol: str) -> dict[str, Any]:
        raise MarketDataError("Network unavailable")

    async def aclose(self) -> None:
        return None


@pytest.fixture
def deterministic_provider() -> DeterministicMarketProvider:
    """Provide deterministic market data provider."""
    return DeterministicMarketProvider()


@pytest.fixture
def failing_provider() -> FailingMarketProvider:
    """Provide a market provider that always fails."""
    return FailingMarketProvider()


@pytest.fixture
def market_data_service(deterministic_provider) -> MarketDataService:
    """Provide test MarketDataService with deterministic provider."""
    return MarketDataService(
        provider=deterministic_provider,
        cache_ttl_seconds=60,
    )


# =============================================================================
# STORE AND SESSION FIXTURES
# =============================================================================


class InMemoryPortfolioStore:
    """
    PortfolioStore kept in memory.

    ``fail_next_saves`` makes that many following saves raise
    PersistenceError; ``save_count`` counts successful saves.
    """

    def __init__(self, document: Optional[PortfolioDocument] = None):
        self._document = document
        self._listeners = ListenerRegistry()
        self.fail_next_saves = 0
        self.save_count = 0
        self.save_attempts = 0

    def load(self) -> Optional[PortfolioDocument]:
        if self._document is None:
            return None
        return PortfolioDocument(
            portfolio=self._document.portfolio,
            transactions=list(self._document.transactions),
        )

    def save(self, portfolio: Portfolio, transactions: Sequence[Transaction]) -> None:
        self.save_attempts += 1
        if self.fail_next_saves > 0:
            self.fail_next_saves -= 1
            raise PersistenceError("Simulated write failure")
        self._document = PortfolioDocument(portfolio=portfolio, transactions=list(transactions))
        self.save_count += 1
        self._listeners.notify(self._document)

    def subscribe(self, listener):
        return self._listeners.subscribe(listener)


@pytest.fixture
def memory_store() -> InMemoryPortfolioStore:
    return InMemoryPortfolioStore()


@pytest.fixture
def loaded_session(memory_store) -> PortfolioSession:
    """Session over an empty in-memory store, initial load completed."""
    session = PortfolioSession(store=memory_store, owner_id=None, initial_cash=Decimal("100000"))
    asyncio.run(session.load())
    return session


@pytest.fixture
def portfolio_service(loaded_session, market_data_service, fixed_now) -> PortfolioService:
    return PortfolioService(
        session=loaded_session,
        market_data=market_data_service,
        clock=lambda: fixed_now,
    )


# =============================================================================
# PRICING AND SETTLEMENT FIXTURES
# =============================================================================


@pytest.fixture
def greeks_calculator() -> GreeksCalculator:
    return GreeksCalculator(risk_free_rate=0.0416, trading_day_cutoff_days=365)


@pytest.fixture
def normalizer(greeks_calculator) -> ContractNormalizer:
    return ContractNormalizer(greeks_calculator)


@pytest.fixture
def settlement_engine() -> SettlementEngine:
    return SettlementEngine(grace_seconds=60)


# =============================================================================
# FACTORY HELPERS
# =============================================================================


def option_symbol(underlying: str, expiration: date, right: str, strike: Any) -> str:
    """OCC-style contract symbol, e.g. AAPL240614C00150000."""
    return f"{underlying}{expiration:%y%m%d}{right}{int(Decimal(str(strike)) * 1000):08d}"


def make_holding(
    ticker: str = "AAPL",
    shares: str = "10",
    purchase_price: str = "150",
    current_price: Optional[str] = None,
) -> Holding:
    return Holding(
        ticker=ticker,
        shares=Decimal(shares),
        purchase_price=Decimal(purchase_price),
        current_price=Decimal(current_price or purchase_price),
    )


def make_option_holding(
    underlying: str = "AAPL",
    option_type: OptionType = OptionType.CALL,
    strike: str = "150",
    expiration_date: date = date(2024, 6, 14),
    contracts: int = 1,
    purchase_premium: str = "2.00",
    current_premium: Optional[str] = None,
) -> OptionHolding:
    right = "C" if option_type == OptionType.CALL else "P"
    return OptionHolding(
        symbol=option_symbol(underlying, expiration_date, right, strike),
        underlying=underlying,
        contracts=contracts,
        purchase_premium=Decimal(purchase_premium),
        current_premium=Decimal(current_premium or purchase_premium),
        option_type=option_type,
        strike=Decimal(strike),
        expiration_date=expiration_date,
    )


def make_portfolio(
    cash: str = "10000",
    holdings: Optional[list[Holding]] = None,
    option_holdings: Optional[list[OptionHolding]] = None,
    initial_value: str = "100000",
) -> Portfolio:
    return Portfolio(
        cash=Decimal(cash),
        holdings=list(holdings or []),
        option_holdings=list(option_holdings or []),
        initial_value=Decimal(initial_value),
    )


def make_leg(
    contract_symbol: str,
    strike: float,
    last_price: Optional[float] = None,
    bid: Optional[float] = None,
    ask: Optional[float] = None,
    implied_volatility: Optional[float] = 0.30,
) -> dict[str, Any]:
    """Raw option-chain leg as the options proxy returns it."""
    return {
        "contractSymbol": contract_symbol,
        "strike": strike,
        "lastPrice": last_price,
        "bid": bid,
        "ask": ask,
        "impliedVolatility": implied_volatility,
        "openInterest": 100,
        "volume": 10,
    }


def make_chain(
    underlying: str,
    spot: Optional[float],
    expiration: Any,
    calls: Optional[list[dict[str, Any]]] = None,
    puts: Optional[list[dict[str, Any]]] = None,
) -> dict[str, Any]:
    """Grouped option-chain payload with a single expiration."""
    return {
        "underlyingSymbol": underlying,
        "quote": {"regularMarketPrice": spot},
        "options": [
            {
                "expirationDate": expiration,
                "calls": calls or [],
                "puts": puts or [],
            }
        ],
    }


def assert_decimal_equal(
    actual: Decimal,
    expected: Decimal,
    tolerance: Decimal = Decimal("0.01"),
) -> None:
    """Assert two Decimals are equal within tolerance."""
    diff = abs(actual - expected)
    assert diff <= tolerance, f"Expected {expected}, got {actual} (diff={diff})"


# =============================================================================
# API TEST CLIENT FIXTURE
# =============================================================================


@pytest.fixture
def app_context(tmp_path, test_session_factory, deterministic_provider) -> AppContext:
    """AppContext with a temp data dir, the test database and deterministic quotes."""
    settings = Settings(data_dir=tmp_path, market_data_provider="stub")
    return AppContext(
        settings=settings,
        provider=deterministic_provider,
        session_factory=test_session_factory,
    )


@pytest.fixture
def client(app_context) -> TestClient:
    """Provide FastAPI test client bound to the test AppContext."""
    app.dependency_overrides[get_context] = lambda: app_context
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    reset_settings()
