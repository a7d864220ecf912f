"""Pydantic schemas for portfolio endpoints."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from papertrade.domain.models.enums import OptionType, TransactionType


class StockBuyRequest(BaseModel):
    """Request schema for buying shares."""

    ticker: str = Field(..., min_length=1, max_length=20, description="Stock symbol")
    shares: Decimal = Field(..., gt=0, description="Number of shares")
    price: Optional[Decimal] = Field(
        default=None,
        gt=0,
        description="Price per share; defaults to the current quote",
    )
    name: str = Field(default="", max_length=255, description="Company name for display")

    @field_validator("ticker")
    @classmethod
    def uppercase_ticker(cls, v: str) -> str:
        return v.strip().upper()


class StockSellRequest(BaseModel):
    """Request schema for selling shares."""

    ticker: str = Field(..., min_length=1, max_length=20)
    shares: Decimal = Field(..., gt=0)
    price: Optional[Decimal] = Field(default=None, gt=0)

    @field_validator("ticker")
    @classmethod
    def uppercase_ticker(cls, v: str) -> str:
        return v.strip().upper()


class SellAllRequest(BaseModel):
    """Optional body for closing a whole stock position."""

    price: Optional[Decimal] = Field(default=None, gt=0)


class OptionBuyRequest(BaseModel):
    """Request schema for buying option contracts."""

    symbol: str = Field(..., min_length=1, max_length=40, description="Option contract symbol")
    underlying: str = Field(..., min_length=1, max_length=20)
    option_type: OptionType
    strike: Decimal = Field(..., gt=0)
    expiration_date: date
    contracts: int = Field(..., gt=0)
    premium: Decimal = Field(..., gt=0, description="Premium per share (1/100 of a contract)")

    @field_validator("underlying")
    @classmethod
    def uppercase_underlying(cls, v: str) -> str:
        return v.strip().upper()


class OptionSellRequest(BaseModel):
    """Request schema for selling option contracts."""

    symbol: str = Field(..., min_length=1, max_length=40)
    contracts: int = Field(..., gt=0)
    premium: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Premium per share; defaults to the holding's current premium",
    )


class HoldingResponse(BaseModel):
    """Stock holding with valuation."""

    model_config = {"from_attributes": True}

    ticker: str
    name: str
    shares: Decimal
    purchase_price: Decimal
    current_price: Decimal
    market_value: Decimal
    cost_basis: Decimal


class OptionHoldingResponse(BaseModel):
    """Option holding with valuation."""

    model_config = {"from_attributes": True}

    symbol: str
    underlying: str
    contracts: int
    purchase_premium: Decimal
    current_premium: Decimal
    option_type: OptionType
    strike: Decimal
    expiration_date: date
    market_value: Decimal


class PortfolioResponse(BaseModel):
    """Portfolio holdings and valuation summary."""

    cash: Decimal
    holdings_value: Decimal
    options_value: Decimal
    total_value: Decimal
    initial_value: Decimal
    total_gain: Decimal
    total_gain_percent: Optional[Decimal] = None
    realized_pnl: Decimal
    as_of: Optional[datetime] = None
    holdings: list[HoldingResponse]
    option_holdings: list[OptionHoldingResponse]


class TransactionResponse(BaseModel):
    """Response schema for a single transaction."""

    model_config = {"from_attributes": True}

    txn_id: str
    txn_type: TransactionType
    ticker: str
    quantity: Decimal
    price: Decimal
    total_amount: Decimal
    timestamp: datetime
    realized_pnl: Optional[Decimal] = None
    option_symbol: Optional[str] = None
    option_type: Optional[OptionType] = None
    strike: Optional[Decimal] = None


class TransactionListResponse(BaseModel):
    """Transaction history, newest first."""

    transactions: list[TransactionResponse]
    total: int


class RefreshResponse(BaseModel):
    """Outcome of a manual price refresh."""

    status: str
    reason: str
    prices_updated: int
    settled: list[TransactionResponse]
    deferred: list[str]
    rejected: list[str]
