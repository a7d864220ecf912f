"""SQLAlchemy implementation of PortfolioStore."""

import json
import logging
from collections.abc import Callable, Sequence
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from papertrade.core.exceptions import PersistenceError
from papertrade.core.timezone import now_eastern, to_eastern
from papertrade.domain.models import Portfolio, PortfolioDocument, Transaction
from papertrade.repositories.listeners import ListenerRegistry
from papertrade.repositories.protocols import StoreListener
from papertrade.repositories.serialization import portfolio_from_dict, portfolio_to_dict
from papertrade.repositories.sqlalchemy.orm_models import PortfolioORM, TransactionORM

logger = logging.getLogger(__name__)


class SqlAlchemyPortfolioStore:
    """
    SQLAlchemy-backed store for a signed-in owner's portfolio.

    The portfolio aggregate is one JSON row per owner; transactions are
    rows in an append-only table. A save writes the portfolio row first,
    then the transactions not yet stored, and commits both together.

    Every load and save opens its own session from ``session_factory``, so
    calls arriving on different worker threads never share one.
    """

    def __init__(self, session_factory: sessionmaker, owner_id: str):
        self._session_factory = session_factory
        self._owner_id = owner_id
        self._listeners = ListenerRegistry()

    @property
    def owner_id(self) -> str:
        return self._owner_id

    def load(self) -> Optional[PortfolioDocument]:
        with self._session_factory() as db:
            try:
                orm_portfolio = db.get(PortfolioORM, self._owner_id)
                if orm_portfolio is None:
                    return None
                orm_txns = (
                    db.query(TransactionORM)
                    .filter(TransactionORM.owner_id == self._owner_id)
                    .order_by(TransactionORM.position)
                    .all()
                )
                return PortfolioDocument(
                    portfolio=portfolio_from_dict(json.loads(orm_portfolio.portfolio_json)),
                    transactions=[self._to_domain(t) for t in orm_txns],
                )
            except (SQLAlchemyError, ValueError, KeyError) as exc:
                db.rollback()
                raise PersistenceError(
                    f"Cannot load portfolio for {self._owner_id}: {exc}"
                ) from exc

    def save(self, portfolio: Portfolio, transactions: Sequence[Transaction]) -> None:
        transactions = list(transactions)
        with self._session_factory() as db:
            try:
                orm_portfolio = db.get(PortfolioORM, self._owner_id)
                portfolio_json = json.dumps(portfolio_to_dict(portfolio))
                now = now_eastern().replace(tzinfo=None)
                if orm_portfolio is None:
                    orm_portfolio = PortfolioORM(
                        owner_id=self._owner_id,
                        portfolio_json=portfolio_json,
                        created_at_est=now,
                        updated_at_est=now,
                    )
                    db.add(orm_portfolio)
                else:
                    orm_portfolio.portfolio_json = portfolio_json
                    orm_portfolio.updated_at_est = now
                db.flush()

                stored_ids = {
                    txn_id
                    for (txn_id,) in db.query(TransactionORM.txn_id).filter(
                        TransactionORM.owner_id == self._owner_id
                    )
                }
                position = len(stored_ids)
                appended = 0
                for txn in transactions:
                    if txn.txn_id in stored_ids:
                        continue
                    db.add(self._to_orm(txn, position))
                    position += 1
                    appended += 1

                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                raise PersistenceError(
                    f"Cannot save portfolio for {self._owner_id}: {exc}"
                ) from exc

        logger.debug("Saved portfolio for %s (%d new transactions)", self._owner_id, appended)
        self._listeners.notify(PortfolioDocument(portfolio=portfolio, transactions=transactions))

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        return self._listeners.subscribe(listener)

    def _to_orm(self, txn: Transaction, position: int) -> TransactionORM:
        """Convert domain model to ORM model."""
        return TransactionORM(
            txn_id=txn.txn_id,
            owner_id=self._owner_id,
            position=position,
            txn_time_est=to_eastern(txn.timestamp).replace(tzinfo=None),
            txn_type=txn.txn_type,
            symbol=txn.ticker,
            quantity=txn.quantity,
            price=txn.price,
            total_amount=txn.total_amount,
            realized_pnl=txn.realized_pnl,
            option_symbol=txn.option_symbol,
            option_type=txn.option_type,
            strike=txn.strike,
        )

    @staticmethod
    def _to_domain(orm: TransactionORM) -> Transaction:
        """Convert ORM model to domain model."""
        return Transaction(
            txn_id=orm.txn_id,
            txn_type=orm.txn_type,
            ticker=orm.symbol,
            quantity=Decimal(str(orm.quantity)),
            price=Decimal(str(orm.price)),
            total_amount=Decimal(str(orm.total_amount)),
            timestamp=to_eastern(orm.txn_time_est),
            realized_pnl=Decimal(str(orm.realized_pnl)) if orm.realized_pnl is not None else None,
            option_symbol=orm.option_symbol,
            option_type=orm.option_type,
            strike=Decimal(str(orm.strike)) if orm.strike is not None else None,
        )
