"""JSON-friendly conversion of portfolio documents for the stores."""

from dataclasses import asdict
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from papertrade.domain.models import (
    Holding,
    OptionHolding,
    Portfolio,
    PortfolioDocument,
    Transaction,
)


def _plain(value: Any) -> Any:
    """Convert Decimal/date/Enum leaves into JSON-serializable values."""
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_plain(item) for item in value]
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


def _decimal(value: Optional[str]) -> Optional[Decimal]:
    return Decimal(value) if value is not None else None


def portfolio_to_dict(portfolio: Portfolio) -> dict[str, Any]:
    return _plain(asdict(portfolio))


def portfolio_from_dict(data: dict[str, Any]) -> Portfolio:
    return Portfolio(
        cash=Decimal(data["cash"]),
        holdings=[
            Holding(
                ticker=h["ticker"],
                name=h.get("name", ""),
                shares=Decimal(h["shares"]),
                purchase_price=Decimal(h["purchase_price"]),
                current_price=Decimal(h["current_price"]),
            )
            for h in data.get("holdings", [])
        ],
        option_holdings=[
            OptionHolding(
                symbol=o["symbol"],
                underlying=o["underlying"],
                contracts=int(o["contracts"]),
                purchase_premium=Decimal(o["purchase_premium"]),
                current_premium=Decimal(o["current_premium"]),
                option_type=o["option_type"],
                strike=Decimal(o["strike"]),
                expiration_date=date.fromisoformat(o["expiration_date"]),
            )
            for o in data.get("option_holdings", [])
        ],
        initial_value=Decimal(data.get("initial_value", data["cash"])),
    )


def transaction_to_dict(transaction: Transaction) -> dict[str, Any]:
    return _plain(asdict(transaction))


def transaction_from_dict(data: dict[str, Any]) -> Transaction:
    return Transaction(
        txn_id=data["txn_id"],
        txn_type=data["txn_type"],
        ticker=data["ticker"],
        quantity=Decimal(data["quantity"]),
        price=Decimal(data["price"]),
        total_amount=Decimal(data["total_amount"]),
        timestamp=datetime.fromisoformat(data["timestamp"]),
        realized_pnl=_decimal(data.get("realized_pnl")),
        option_symbol=data.get("option_symbol"),
        option_type=data.get("option_type"),
        strike=_decimal(data.get("strike")),
    )


def document_to_dict(document: PortfolioDocument) -> dict[str, Any]:
    return {
        "portfolio": portfolio_to_dict(document.portfolio),
        "transactions": [transaction_to_dict(t) for t in document.transactions],
    }


def document_from_dict(data: dict[str, Any]) -> PortfolioDocument:
    return PortfolioDocument(
        portfolio=portfolio_from_dict(data["portfolio"]),
        transactions=[transaction_from_dict(t) for t in data.get("transactions", [])],
    )
