"""Dependency injection for FastAPI."""

from fastapi import Depends

from papertrade.app_context import AppContext, get_app_context
from papertrade.services import (
    ContractNormalizer,
    GreeksCalculator,
    MarketDataService,
    PortfolioService,
    PriceRefreshScheduler,
)


def get_context() -> AppContext:
    """Provide the application context (overridden in tests)."""
    return get_app_context()


def get_portfolio_service(ctx: AppContext = Depends(get_context)) -> PortfolioService:
    """Provide PortfolioService bound to the active session."""
    return ctx.portfolio


def get_market_data_service(ctx: AppContext = Depends(get_context)) -> MarketDataService:
    """Provide MarketDataService instance."""
    return ctx.market_data


def get_greeks_calculator(ctx: AppContext = Depends(get_context)) -> GreeksCalculator:
    return ctx.greeks


def get_contract_normalizer(ctx: AppContext = Depends(get_context)) -> ContractNormalizer:
    return ctx.normalizer


def get_refresh_scheduler(ctx: AppContext = Depends(get_context)) -> PriceRefreshScheduler:
    return ctx.scheduler
