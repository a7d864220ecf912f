"""JSON file implementation of PortfolioStore."""

import json
import logging
import os
import tempfile
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Optional

from papertrade.core.exceptions import PersistenceError
from papertrade.domain.models import Portfolio, PortfolioDocument, Transaction
from papertrade.repositories.listeners import ListenerRegistry
from papertrade.repositories.protocols import StoreListener
from papertrade.repositories.serialization import document_from_dict, document_to_dict

logger = logging.getLogger(__name__)


class LocalPortfolioStore:
    """
    Stores the anonymous session's portfolio in a single JSON document.

    Portfolio and transactions live in the same file, which is replaced
    atomically on save (write to a temp file, then os.replace).
    """

    def __init__(self, path: Path):
        self._path = Path(path)
        self._listeners = ListenerRegistry()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[PortfolioDocument]:
        if not self._path.exists():
            return None
        try:
            with self._path.open("r", encoding="utf-8") as f:
                data = json.load(f)
            return document_from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            raise PersistenceError(f"Cannot read portfolio from {self._path}: {exc}") from exc

    def save(self, portfolio: Portfolio, transactions: Sequence[Transaction]) -> None:
        document = PortfolioDocument(portfolio=portfolio, transactions=list(transactions))
        payload = json.dumps(document_to_dict(document), indent=2)

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise PersistenceError(f"Cannot write portfolio to {self._path}: {exc}") from exc

        logger.debug("Saved portfolio with %d transactions to %s", len(document.transactions), self._path)
        self._listeners.notify(document)

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        return self._listeners.subscribe(listener)
