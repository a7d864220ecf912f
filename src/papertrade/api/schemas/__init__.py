"""Pydantic schemas for API request/response."""

from papertrade.api.schemas.portfolio import (
    StockBuyRequest,
    StockSellRequest,
    SellAllRequest,
    OptionBuyRequest,
    OptionSellRequest,
    HoldingResponse,
    OptionHoldingResponse,
    PortfolioResponse,
    TransactionResponse,
    TransactionListResponse,
    RefreshResponse,
)
from papertrade.api.schemas.options import (
    GreeksRequest,
    GreeksResponse,
    OptionContractResponse,
    OptionChainResponse,
)
from papertrade.api.schemas.session import SessionOpenRequest, SessionResponse

__all__ = [
    "StockBuyRequest",
    "StockSellRequest",
    "SellAllRequest",
    "OptionBuyRequest",
    "OptionSellRequest",
    "HoldingResponse",
    "OptionHoldingResponse",
    "PortfolioResponse",
    "TransactionResponse",
    "TransactionListResponse",
    "RefreshResponse",
    "GreeksRequest",
    "GreeksResponse",
    "OptionContractResponse",
    "OptionChainResponse",
    "SessionOpenRequest",
    "SessionResponse",
]
