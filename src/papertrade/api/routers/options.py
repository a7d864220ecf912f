"""Option chain and Greeks endpoints."""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends

from papertrade.api.deps import (
    get_contract_normalizer,
    get_greeks_calculator,
    get_market_data_service,
)
from papertrade.api.schemas import (
    GreeksRequest,
    GreeksResponse,
    OptionChainResponse,
    OptionContractResponse,
)
from papertrade.core.exceptions import NotFoundError
from papertrade.core.timezone import to_eastern
from papertrade.services import ContractNormalizer, GreeksCalculator, MarketDataService

router = APIRouter(prefix="/options", tags=["options"])


@router.get("/{symbol}/chain", response_model=OptionChainResponse)
async def get_option_chain(
    symbol: str,
    market_data: MarketDataService = Depends(get_market_data_service),
    normalizer: ContractNormalizer = Depends(get_contract_normalizer),
) -> OptionChainResponse:
    """Normalized chain with Greeks, priced against the latest underlying quote."""
    symbol = symbol.strip().upper()
    payload = await market_data.get_option_chain(symbol)
    if not payload:
        raise NotFoundError("Option chain", symbol)

    quotes = await market_data.get_quotes([symbol])
    underlying_price: Optional[Decimal] = quotes[symbol].last_price if symbol in quotes else None
    contracts = normalizer.normalize_chain(payload, underlying_price)
    if underlying_price is None:
        underlying_price = (payload.get("quote") or {}).get("regularMarketPrice")

    return OptionChainResponse(
        symbol=symbol,
        underlying_price=underlying_price,
        expirations=sorted({c.expiration_date for c in contracts}),
        contracts=[OptionContractResponse.model_validate(c) for c in contracts],
    )


@router.post("/greeks", response_model=GreeksResponse)
def compute_greeks(
    request: GreeksRequest,
    calculator: GreeksCalculator = Depends(get_greeks_calculator),
) -> GreeksResponse:
    """Greeks for one contract; every field is null when they cannot be computed."""
    greeks = calculator.compute_greeks(
        request.option_type,
        request.underlying_price,
        request.strike,
        request.expiration_date,
        request.implied_volatility,
        now=to_eastern(request.as_of) if request.as_of else None,
    )
    return GreeksResponse.model_validate(greeks)
