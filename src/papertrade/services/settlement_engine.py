"""Settlement of expired option holdings."""

import logging
import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from papertrade.core.timezone import expiration_instant, to_eastern
from papertrade.domain.models import (
    Holding,
    OptionHolding,
    OptionType,
    Portfolio,
    Transaction,
    TransactionType,
)

logger = logging.getLogger(__name__)

DEFAULT_GRACE_SECONDS = 60


@dataclass
class SettlementResult:
    """
    Proposed portfolio state after a settlement pass.

    The caller must persist ``portfolio`` and ``transactions`` together.
    ``deferred`` lists option symbols left open for lack of a quote;
    ``rejected`` lists put exercises refused for lack of shares.
    """

    portfolio: Portfolio
    transactions: list[Transaction]
    changed: bool
    settled: list[Transaction] = field(default_factory=list)
    deferred: list[str] = field(default_factory=list)
    rejected: list[str] = field(default_factory=list)


class SettlementEngine:
    """
    Converts expired option holdings into cash, shares and audit entries.

    Each holding moves Open -> Settled exactly once: a settled holding is
    removed from the portfolio, so running the engine again on its output
    is a no-op. The engine never mutates its inputs and performs no I/O.
    """

    def __init__(self, grace_seconds: int = DEFAULT_GRACE_SECONDS):
        self._grace = timedelta(seconds=grace_seconds)

    def is_expired(self, option: OptionHolding, now: datetime) -> bool:
        """True once the contract's expiry is more than the grace period in the past."""
        return expiration_instant(option.expiration_date) < to_eastern(now) - self._grace

    def settle_expired(
        self,
        portfolio: Portfolio,
        transactions: Sequence[Transaction],
        underlying_prices: Mapping[str, Decimal],
        now: datetime,
    ) -> SettlementResult:
        """
        Settle every expired option holding that has an underlying price.

        In-the-money contracts are exercised (calls buy shares at the strike,
        puts deliver held shares at the strike); out-of-the-money contracts
        expire worthless with the full premium realized as a loss.
        """
        now = to_eastern(now)
        cash = portfolio.cash
        holdings = list(portfolio.holdings)
        remaining: list[OptionHolding] = []
        settled: list[Transaction] = []
        deferred: list[str] = []
        rejected: list[str] = []

        for option in portfolio.option_holdings:
            if not self.is_expired(option, now):
                remaining.append(option)
                continue

            price = underlying_prices.get(option.underlying)
            if price is None:
                logger.info(
                    "No quote for %s; deferring settlement of %s",
                    option.underlying,
                    option.symbol,
                )
                deferred.append(option.symbol)
                remaining.append(option)
                continue

            spot = Decimal(str(price))
            intrinsic = option.intrinsic_value(spot)

            if intrinsic > 0:
                exercised = self._exercise(option, spot, intrinsic, cash, holdings, now)
                if exercised is None:
                    rejected.append(option.symbol)
                    remaining.append(option)
                    continue
                cash, holdings, txn = exercised
            else:
                txn = self._expire_worthless(option, now)

            logger.info(
                "Settled %s x%d as %s (realized %s)",
                option.symbol,
                option.contracts,
                txn.txn_type.value,
                txn.realized_pnl,
            )
            settled.append(txn)

        if not settled:
            return SettlementResult(
                portfolio=portfolio,
                transactions=list(transactions),
                changed=False,
                deferred=deferred,
                rejected=rejected,
            )

        if cash < 0:
            logger.warning("Settlement left cash negative: %s", cash)

        updated = replace(
            portfolio,
            cash=cash,
            holdings=holdings,
            option_holdings=remaining,
        )
        return SettlementResult(
            portfolio=updated,
            transactions=[*transactions, *settled],
            changed=True,
            settled=settled,
            deferred=deferred,
            rejected=rejected,
        )

    def _exercise(
        self,
        option: OptionHolding,
        spot: Decimal,
        intrinsic: Decimal,
        cash: Decimal,
        holdings: list[Holding],
        now: datetime,
    ) -> Optional[tuple[Decimal, list[Holding], Transaction]]:
        """Exercise one in-the-money holding; None if a put cannot be covered."""
        shares = Decimal(option.shares_controlled)
        notional = option.strike * shares
        existing = next((h for h in holdings if h.ticker == option.underlying), None)

        if option.option_type == OptionType.CALL:
            if existing:
                total_shares = existing.shares + shares
                merged = replace(
                    existing,
                    shares=total_shares,
                    purchase_price=(existing.cost_basis + notional) / total_shares,
                    current_price=spot,
                )
                holdings = [merged if h is existing else h for h in holdings]
            else:
                holdings = [
                    *holdings,
                    Holding(
                        ticker=option.underlying,
                        shares=shares,
                        purchase_price=option.strike,
                        current_price=spot,
                    ),
                ]
            cash = cash - notional
        else:
            available = existing.shares if existing else Decimal("0")
            if available < shares:
                logger.warning(
                    "Rejecting exercise of %s: needs %s shares of %s, holding %s",
                    option.symbol,
                    shares,
                    option.underlying,
                    available,
                )
                return None
            left = available - shares
            if left == 0:
                holdings = [h for h in holdings if h is not existing]
            else:
                reduced = replace(existing, shares=left, current_price=spot)
                holdings = [reduced if h is existing else h for h in holdings]
            cash = cash + notional

        txn = self._transaction(
            option,
            TransactionType.OPTION_EXERCISE,
            price=intrinsic,
            total_amount=notional,
            realized_pnl=(intrinsic - option.purchase_premium) * shares,
            now=now,
        )
        return cash, holdings, txn

    def _expire_worthless(self, option: OptionHolding, now: datetime) -> Transaction:
        return self._transaction(
            option,
            TransactionType.OPTION_EXPIRE,
            price=Decimal("0"),
            total_amount=Decimal("0"),
            realized_pnl=-option.purchase_premium * option.shares_controlled,
            now=now,
        )

    @staticmethod
    def _transaction(
        option: OptionHolding,
        txn_type: TransactionType,
        price: Decimal,
        total_amount: Decimal,
        realized_pnl: Decimal,
        now: datetime,
    ) -> Transaction:
        return Transaction(
            txn_id=str(uuid.uuid4()),
            txn_type=txn_type,
            ticker=option.underlying,
            quantity=Decimal(option.contracts),
            price=price,
            total_amount=total_amount,
            timestamp=now,
            realized_pnl=realized_pnl,
            option_symbol=option.symbol,
            option_type=option.option_type,
            strike=option.strike,
        )
