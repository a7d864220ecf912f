"""Change notification shared by the portfolio stores."""

import logging
from collections.abc import Callable

from papertrade.domain.models import PortfolioDocument
from papertrade.repositories.protocols import StoreListener

logger = logging.getLogger(__name__)


class ListenerRegistry:
    """Holds save listeners and notifies them in registration order."""

    def __init__(self) -> None:
        self._listeners: list[StoreListener] = []

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self, document: PortfolioDocument) -> None:
        for listener in list(self._listeners):
            try:
                listener(document)
            except Exception:
                # A failing listener must not undo a completed save
                logger.exception("Portfolio store listener failed")
