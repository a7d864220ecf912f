"""Portfolio endpoints: holdings, history and trades."""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status

from papertrade.api.deps import get_portfolio_service, get_refresh_scheduler
from papertrade.api.schemas import (
    HoldingResponse,
    OptionBuyRequest,
    OptionHoldingResponse,
    OptionSellRequest,
    PortfolioResponse,
    RefreshResponse,
    SellAllRequest,
    StockBuyRequest,
    StockSellRequest,
    TransactionListResponse,
    TransactionResponse,
)
from papertrade.services import OptionOrder, PortfolioService, PriceRefreshScheduler

router = APIRouter(prefix="/portfolio", tags=["portfolio"])


@router.get("", response_model=PortfolioResponse)
async def get_portfolio(
    service: PortfolioService = Depends(get_portfolio_service),
) -> PortfolioResponse:
    """Holdings, option holdings and valuation of the active portfolio."""
    summary = await service.get_summary()
    portfolio = await service.get_portfolio()
    return PortfolioResponse(
        cash=summary.cash,
        holdings_value=summary.holdings_value,
        options_value=summary.options_value,
        total_value=summary.total_value,
        initial_value=summary.initial_value,
        total_gain=summary.total_gain,
        total_gain_percent=summary.total_gain_percent,
        realized_pnl=summary.realized_pnl,
        as_of=summary.as_of,
        holdings=[HoldingResponse.model_validate(h) for h in portfolio.holdings],
        option_holdings=[
            OptionHoldingResponse.model_validate(o) for o in portfolio.option_holdings
        ],
    )


@router.get("/transactions", response_model=TransactionListResponse)
async def list_transactions(
    service: PortfolioService = Depends(get_portfolio_service),
) -> TransactionListResponse:
    """Transaction history, newest first."""
    transactions = await service.list_transactions()
    return TransactionListResponse(
        transactions=[TransactionResponse.model_validate(t) for t in transactions],
        total=len(transactions),
    )


@router.post(
    "/stocks/buy",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def buy_stock(
    request: StockBuyRequest,
    service: PortfolioService = Depends(get_portfolio_service),
) -> TransactionResponse:
    txn = await service.buy_stock(
        request.ticker, request.shares, price=request.price, name=request.name
    )
    return TransactionResponse.model_validate(txn)


@router.post(
    "/stocks/sell",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def sell_stock(
    request: StockSellRequest,
    service: PortfolioService = Depends(get_portfolio_service),
) -> TransactionResponse:
    txn = await service.sell_stock(request.ticker, request.shares, price=request.price)
    return TransactionResponse.model_validate(txn)


@router.post(
    "/stocks/{ticker}/sell-all",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def sell_all_stock(
    ticker: str,
    request: Optional[SellAllRequest] = None,
    service: PortfolioService = Depends(get_portfolio_service),
) -> TransactionResponse:
    """Close the whole position in ``ticker``."""
    price = request.price if request else None
    txn = await service.sell_all_stock(ticker, price=price)
    return TransactionResponse.model_validate(txn)


@router.post(
    "/options/buy",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def buy_option(
    request: OptionBuyRequest,
    service: PortfolioService = Depends(get_portfolio_service),
) -> TransactionResponse:
    txn = await service.buy_option(
        OptionOrder(
            symbol=request.symbol,
            underlying=request.underlying,
            option_type=request.option_type,
            strike=request.strike,
            expiration_date=request.expiration_date,
            contracts=request.contracts,
            premium=request.premium,
        )
    )
    return TransactionResponse.model_validate(txn)


@router.post(
    "/options/sell",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def sell_option(
    request: OptionSellRequest,
    service: PortfolioService = Depends(get_portfolio_service),
) -> TransactionResponse:
    txn = await service.sell_option(request.symbol, request.contracts, premium=request.premium)
    return TransactionResponse.model_validate(txn)


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_prices(
    reason: Literal["manual", "visibility"] = Query("manual"),
    scheduler: PriceRefreshScheduler = Depends(get_refresh_scheduler),
) -> RefreshResponse:
    """Run a refresh tick now (same path as the periodic job)."""
    if reason == "visibility":
        result = await scheduler.on_visibility_regained()
    else:
        result = await scheduler.refresh(reason="manual")
    return RefreshResponse(
        status=result.status.value,
        reason=result.reason,
        prices_updated=result.prices_updated,
        settled=[TransactionResponse.model_validate(t) for t in result.settled],
        deferred=result.deferred,
        rejected=result.rejected,
    )
