"""Application context for in-process service management.

Wires settings, market data, pricing, settlement and the active portfolio
session together. The FastAPI app reaches every service through one
AppContext instance.
"""

import logging
from pathlib import Path
from typing import Optional

from sqlalchemy.orm import sessionmaker

from papertrade.config.settings import Settings, get_settings, set_settings
from papertrade.core.exceptions import SessionNotReadyError
from papertrade.providers import (
    HttpMarketDataProvider,
    MarketDataProvider,
    StubMarketDataProvider,
)
from papertrade.repositories.local import LocalPortfolioStore
from papertrade.repositories.protocols import PortfolioStore
from papertrade.repositories.sqlalchemy import (
    SqlAlchemyPortfolioStore,
    get_session_factory,
    init_db,
)
from papertrade.services import (
    ContractNormalizer,
    GreeksCalculator,
    MarketDataService,
    PortfolioService,
    PortfolioSession,
    PriceRefreshScheduler,
    SettlementEngine,
)

logger = logging.getLogger(__name__)


def create_market_data_provider(settings: Settings) -> MarketDataProvider:
    """Build the provider selected by ``settings.market_data_provider``."""
    if settings.market_data_provider == "http":
        return HttpMarketDataProvider(
            quote_base_url=settings.quote_api_base_url,
            options_proxy_url=settings.options_proxy_url,
            api_key=settings.quote_api_key,
            timeout_seconds=settings.http_timeout_seconds,
        )
    return StubMarketDataProvider()


class AppContext:
    """
    Application context providing in-process access to all services.

    Services are created lazily. Opening a session replaces the active
    portfolio session and drops services bound to the previous one.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        provider: Optional[MarketDataProvider] = None,
        session_factory: Optional[sessionmaker] = None,
    ):
        """
        Initialize application context.

        Args:
            settings: Settings to use. Defaults to the global settings.
            provider: Market data provider. Defaults to the one named in settings.
            session_factory: SQLAlchemy session factory for owner stores.
                Defaults to the configured database.
        """
        self._settings = settings
        self._provider = provider
        self._session_factory = session_factory
        self._initialized = False

        self._session: Optional[PortfolioSession] = None

        # Service instances (lazy initialized)
        self._greeks: Optional[GreeksCalculator] = None
        self._normalizer: Optional[ContractNormalizer] = None
        self._settlement: Optional[SettlementEngine] = None
        self._market_data_service: Optional[MarketDataService] = None
        self._portfolio_service: Optional[PortfolioService] = None
        self._scheduler: Optional[PriceRefreshScheduler] = None

    def initialize(self) -> None:
        """Apply settings and prepare the database used by owner sessions."""
        if self._settings is not None:
            set_settings(self._settings)
        if self._session_factory is None:
            init_db()
            self._session_factory = get_session_factory()
        self._initialized = True

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    @property
    def data_dir(self) -> Path:
        return self.settings.get_data_dir()

    def create_store(self, owner_id: Optional[str] = None) -> PortfolioStore:
        """Local JSON store for the anonymous session, database store for an owner."""
        if owner_id is None:
            return LocalPortfolioStore(self.settings.get_local_portfolio_path())
        if not self._initialized:
            self.initialize()
        return SqlAlchemyPortfolioStore(self._session_factory, owner_id)

    # Session management
    async def open_session(self, owner_id: Optional[str] = None) -> PortfolioSession:
        """Replace the active session and run its initial load."""
        session = PortfolioSession(
            store=self.create_store(owner_id),
            owner_id=owner_id,
            initial_cash=self.settings.initial_cash,
        )
        self._session = session
        self._portfolio_service = None
        await session.load()
        logger.info("Opened portfolio session for %s", owner_id or "anonymous user")
        return session

    @property
    def current_session(self) -> Optional[PortfolioSession]:
        return self._session

    # Service accessors
    @property
    def greeks(self) -> GreeksCalculator:
        """Get the GreeksCalculator instance."""
        if self._greeks is None:
            settings = self.settings
            self._greeks = GreeksCalculator(
                risk_free_rate=settings.risk_free_rate,
                trading_day_cutoff_days=settings.trading_day_cutoff_days,
            )
        return self._greeks

    @property
    def normalizer(self) -> ContractNormalizer:
        if self._normalizer is None:
            self._normalizer = ContractNormalizer(self.greeks)
        return self._normalizer

    @property
    def settlement(self) -> SettlementEngine:
        if self._settlement is None:
            self._settlement = SettlementEngine(
                grace_seconds=self.settings.settlement_grace_seconds
            )
        return self._settlement

    @property
    def market_data(self) -> MarketDataService:
        """Get the MarketDataService instance."""
        if self._market_data_service is None:
            settings = self.settings
            provider = self._provider or create_market_data_provider(settings)
            self._market_data_service = MarketDataService(
                provider=provider,
                cache_ttl_seconds=settings.market_data_cache_ttl_seconds,
            )
        return self._market_data_service

    @property
    def portfolio(self) -> PortfolioService:
        """PortfolioService bound to the active session."""
        if self._session is None or not self._session.is_loaded:
            raise SessionNotReadyError()
        if self._portfolio_service is None:
            self._portfolio_service = PortfolioService(
                session=self._session,
                market_data=self.market_data,
            )
        return self._portfolio_service

    @property
    def scheduler(self) -> PriceRefreshScheduler:
        """Get the PriceRefreshScheduler instance."""
        if self._scheduler is None:
            settings = self.settings
            self._scheduler = PriceRefreshScheduler(
                session_provider=lambda: self._session,
                market_data=self.market_data,
                normalizer=self.normalizer,
                settlement_engine=self.settlement,
                price_epsilon=settings.price_epsilon,
                interval_seconds=settings.refresh_interval_seconds,
                persist_attempts=settings.persist_attempts,
            )
        return self._scheduler

    async def close(self) -> None:
        """Clean up resources."""
        if self._scheduler is not None:
            self._scheduler.shutdown()
        if self._market_data_service is not None:
            await self._market_data_service.close()
            self._market_data_service = None
        self._session = None
        self._portfolio_service = None


# Global application context (singleton for the API process)
_app_context: Optional[AppContext] = None


def get_app_context() -> AppContext:
    """Get or create the global application context."""
    global _app_context
    if _app_context is None:
        _app_context = AppContext()
    return _app_context


def set_app_context(context: Optional[AppContext]) -> None:
    """Set the global application context."""
    global _app_context
    _app_context = context
