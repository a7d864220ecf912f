"""Transaction domain model."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from papertrade.domain.models.enums import OptionType, TransactionType


@dataclass(frozen=True)
class Transaction:
    """
    Append-only audit log entry.

    Created exclusively by portfolio-mutating operations and never edited
    or removed afterwards.
    - BUY/SELL: quantity in shares, price per share
    - OPTION_*: quantity in contracts, price per share of the contract
    - total_amount is the absolute cash moved (0 for OPTION_EXPIRE)
    """

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

    def __post_init__(self) -> None:
        if isinstance(self.txn_type, str):
            object.__setattr__(self, "txn_type", TransactionType(self.txn_type))
        if isinstance(self.option_type, str):
            object.__setattr__(self, "option_type", OptionType(self.option_type))

    @property
    def is_option_transaction(self) -> bool:
        """Return True for any transaction on an option contract."""
        return self.txn_type in (
            TransactionType.OPTION_BUY,
            TransactionType.OPTION_SELL,
            TransactionType.OPTION_EXERCISE,
            TransactionType.OPTION_EXPIRE,
        )

    @property
    def display_symbol(self) -> str:
        """Option symbol for option transactions, ticker otherwise."""
        return self.option_symbol or self.ticker
