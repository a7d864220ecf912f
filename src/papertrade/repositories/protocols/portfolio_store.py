"""Portfolio store protocol."""

from collections.abc import Callable, Sequence
from typing import Optional, Protocol

from papertrade.domain.models import Portfolio, PortfolioDocument, Transaction

StoreListener = Callable[[PortfolioDocument], None]


class PortfolioStore(Protocol):
    """
    Interface for portfolio persistence.

    A store holds exactly one portfolio and its transaction log. ``save``
    writes both together; a reader never sees a portfolio without the
    transactions that produced it.
    """

    def load(self) -> Optional[PortfolioDocument]:
        """Return the stored document, or None if nothing was saved yet."""
        ...

    def save(self, portfolio: Portfolio, transactions: Sequence[Transaction]) -> None:
        """Persist the portfolio and its full transaction log as one unit."""
        ...

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register a listener called after each save; returns an unsubscribe callable."""
        ...
