"""Portfolio session: the active owner, their store and the initial-load gate."""

import asyncio
import logging
import uuid
from collections.abc import Sequence
from decimal import Decimal
from typing import Optional

from papertrade.core.exceptions import SessionNotReadyError
from papertrade.domain.models import Portfolio, PortfolioDocument, Transaction
from papertrade.repositories.protocols import PortfolioStore

logger = logging.getLogger(__name__)


class PortfolioSession:
    """
    One open portfolio session.

    A session is bound to a single store for its whole life. Switching
    owners means opening a new session; anything still holding the old one
    can detect the switch by comparing identity.

    Reads and writes go through the store on a worker thread so the event
    loop never blocks on disk or database I/O.
    """

    def __init__(
        self,
        store: PortfolioStore,
        owner_id: Optional[str] = None,
        initial_cash: Decimal = Decimal("100000"),
    ):
        self.session_id = str(uuid.uuid4())
        self._store = store
        self._owner_id = owner_id
        self._initial_cash = initial_cash
        self._loaded = False

    @property
    def owner_id(self) -> Optional[str]:
        return self._owner_id

    @property
    def is_anonymous(self) -> bool:
        return self._owner_id is None

    @property
    def is_loaded(self) -> bool:
        """True once the initial load has completed."""
        return self._loaded

    @property
    def store(self) -> PortfolioStore:
        return self._store

    async def load(self) -> PortfolioDocument:
        """
        Perform the initial load.

        A store with nothing saved yet is seeded with a fresh portfolio
        funded with the initial cash.
        """
        document = await asyncio.to_thread(self._store.load)
        if document is None:
            document = PortfolioDocument(portfolio=Portfolio.new(self._initial_cash))
            await self.write(document.portfolio, document.transactions)
            logger.info(
                "Created new portfolio for %s with %s cash",
                self._owner_id or "anonymous session",
                self._initial_cash,
            )
        self._loaded = True
        return document

    async def read_latest(self) -> PortfolioDocument:
        """Re-read the stored state; callers compute from this, never from a cached copy."""
        if not self._loaded:
            raise SessionNotReadyError()
        document = await asyncio.to_thread(self._store.load)
        if document is None:
            return PortfolioDocument(portfolio=Portfolio.new(self._initial_cash))
        return document

    async def write(self, portfolio: Portfolio, transactions: Sequence[Transaction]) -> None:
        """Persist portfolio and transactions together."""
        await asyncio.to_thread(self._store.save, portfolio, list(transactions))
