"""Service layer - business logic orchestration."""

from papertrade.services.greeks_calculator import GreeksCalculator, black_scholes_greeks
from papertrade.services.contract_normalizer import (
    ContractNormalizer,
    flatten_chain,
    parse_expiration,
)
from papertrade.services.settlement_engine import SettlementEngine, SettlementResult
from papertrade.services.market_data_service import MarketDataService
from papertrade.services.portfolio_session import PortfolioSession
from papertrade.services.portfolio_service import OptionOrder, PortfolioService
from papertrade.services.price_refresh_scheduler import (
    PriceRefreshScheduler,
    RefreshResult,
    RefreshStatus,
)

__all__ = [
    "GreeksCalculator",
    "black_scholes_greeks",
    "ContractNormalizer",
    "flatten_chain",
    "parse_expiration",
    "SettlementEngine",
    "SettlementResult",
    "MarketDataService",
    "PortfolioSession",
    "OptionOrder",
    "PortfolioService",
    "PriceRefreshScheduler",
    "RefreshResult",
    "RefreshStatus",
]
