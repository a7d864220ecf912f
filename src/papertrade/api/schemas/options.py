"""Pydantic schemas for option chain and Greeks endpoints."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from papertrade.domain.models.enums import OptionType


class GreeksResponse(BaseModel):
    """Option sensitivities; null when unavailable."""

    model_config = {"from_attributes": True}

    delta: Optional[float] = None
    gamma: Optional[float] = None
    theta: Optional[float] = None
    vega: Optional[float] = None
    implied_volatility: Optional[float] = None


class OptionContractResponse(BaseModel):
    """Normalized option contract."""

    model_config = {"from_attributes": True}

    symbol: str
    underlying: str
    strike: Decimal
    expiration_date: date
    option_type: OptionType
    price: Decimal
    last_price: Decimal
    bid: Decimal
    ask: Decimal
    implied_volatility: Optional[float] = None
    greeks: GreeksResponse
    volume: int = 0
    open_interest: int = 0


class OptionChainResponse(BaseModel):
    """Option chain for one underlying."""

    symbol: str
    underlying_price: Optional[Decimal] = None
    expirations: list[date]
    contracts: list[OptionContractResponse]


class GreeksRequest(BaseModel):
    """Request schema for pricing a single contract."""

    option_type: OptionType
    underlying_price: float = Field(..., gt=0)
    strike: float = Field(..., gt=0)
    expiration_date: date
    implied_volatility: Optional[float] = Field(
        default=None,
        description="Annualized volatility as a fraction (0.25 = 25%)",
    )
    as_of: Optional[datetime] = Field(
        default=None,
        description="Valuation time (US/Eastern if naive); defaults to now",
    )
