"""Portfolio actions: stock and option trades, valuation and history."""

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional

from papertrade.core.exceptions import (
    InsufficientCashError,
    InsufficientContractsError,
    InsufficientSharesError,
    NotFoundError,
    ValidationError,
)
from papertrade.core.timezone import now_eastern
from papertrade.domain.models import (
    CONTRACT_MULTIPLIER,
    Holding,
    OptionHolding,
    OptionType,
    Portfolio,
    Transaction,
    TransactionType,
)
from papertrade.domain.views import PortfolioSummaryView
from papertrade.services.market_data_service import MarketDataService
from papertrade.services.portfolio_session import PortfolioSession

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass
class OptionOrder:
    """Input data for buying option contracts."""

    symbol: str
    underlying: str
    option_type: OptionType
    strike: Decimal
    expiration_date: date
    contracts: int
    premium: Decimal


class PortfolioService:
    """
    User-initiated portfolio actions.

    Every action re-reads the latest stored state, validates against it,
    builds a new Portfolio plus one appended Transaction, and writes both
    through the session's store. Violations raise before anything is
    written.
    """

    def __init__(
        self,
        session: PortfolioSession,
        market_data: Optional[MarketDataService] = None,
        clock: Callable[[], datetime] = now_eastern,
    ):
        self._session = session
        self._market_data = market_data
        self._clock = clock

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_portfolio(self) -> Portfolio:
        document = await self._session.read_latest()
        return document.portfolio

    async def list_transactions(self) -> list[Transaction]:
        """Transaction history, newest first."""
        document = await self._session.read_latest()
        return list(reversed(document.transactions))

    async def get_summary(self) -> PortfolioSummaryView:
        document = await self._session.read_latest()
        portfolio = document.portfolio

        holdings_value = sum((h.market_value for h in portfolio.holdings), ZERO)
        options_value = sum((o.market_value for o in portfolio.option_holdings), ZERO)
        total_value = portfolio.cash + holdings_value + options_value
        total_gain = total_value - portfolio.initial_value
        gain_percent = (
            total_gain / portfolio.initial_value * 100 if portfolio.initial_value else None
        )
        realized = sum(
            (t.realized_pnl for t in document.transactions if t.realized_pnl is not None),
            ZERO,
        )

        return PortfolioSummaryView(
            cash=portfolio.cash,
            holdings_value=holdings_value,
            options_value=options_value,
            total_value=total_value,
            initial_value=portfolio.initial_value,
            total_gain=total_gain,
            total_gain_percent=gain_percent,
            realized_pnl=realized,
            as_of=self._clock(),
        )

    # ------------------------------------------------------------------
    # Stock actions
    # ------------------------------------------------------------------

    async def buy_stock(
        self,
        ticker: str,
        shares: Decimal,
        price: Optional[Decimal] = None,
        name: str = "",
    ) -> Transaction:
        """Buy shares at ``price`` (or the current quote), merging at weighted-average cost."""
        ticker = self._clean_ticker(ticker)
        if shares <= 0:
            raise ValidationError("BUY requires shares > 0")
        price = await self._resolve_price(ticker, price)

        document = await self._session.read_latest()
        portfolio = document.portfolio
        cost = shares * price
        if cost > portfolio.cash:
            raise InsufficientCashError(str(cost), str(portfolio.cash))

        existing = portfolio.find_holding(ticker)
        if existing:
            total_shares = existing.shares + shares
            merged = replace(
                existing,
                shares=total_shares,
                purchase_price=(existing.cost_basis + cost) / total_shares,
                current_price=price,
            )
            holdings = [merged if h is existing else h for h in portfolio.holdings]
        else:
            holdings = [
                *portfolio.holdings,
                Holding(
                    ticker=ticker,
                    shares=shares,
                    purchase_price=price,
                    current_price=price,
                    name=name,
                ),
            ]

        txn = self._transaction(
            TransactionType.BUY, ticker, shares, price, total_amount=cost
        )
        updated = replace(portfolio, cash=portfolio.cash - cost, holdings=holdings)
        await self._session.write(updated, [*document.transactions, txn])
        logger.info("Bought %s %s @ %s", shares, ticker, price)
        return txn

    async def sell_stock(
        self,
        ticker: str,
        shares: Decimal,
        price: Optional[Decimal] = None,
    ) -> Transaction:
        """Sell shares; a holding sold down to zero is removed."""
        ticker = self._clean_ticker(ticker)
        if shares <= 0:
            raise ValidationError("SELL requires shares > 0")

        document = await self._session.read_latest()
        portfolio = document.portfolio
        existing = portfolio.find_holding(ticker)
        if existing is None:
            raise NotFoundError("Holding", ticker)
        if shares > existing.shares:
            raise InsufficientSharesError(ticker, str(shares), str(existing.shares))

        price = await self._resolve_price(ticker, price)
        proceeds = shares * price
        remaining = existing.shares - shares
        if remaining == 0:
            holdings = [h for h in portfolio.holdings if h is not existing]
        else:
            reduced = replace(existing, shares=remaining, current_price=price)
            holdings = [reduced if h is existing else h for h in portfolio.holdings]

        txn = self._transaction(
            TransactionType.SELL,
            ticker,
            shares,
            price,
            total_amount=proceeds,
            realized_pnl=(price - existing.purchase_price) * shares,
        )
        updated = replace(portfolio, cash=portfolio.cash + proceeds, holdings=holdings)
        await self._session.write(updated, [*document.transactions, txn])
        logger.info("Sold %s %s @ %s", shares, ticker, price)
        return txn

    async def sell_all_stock(self, ticker: str, price: Optional[Decimal] = None) -> Transaction:
        """Close the whole position in ``ticker``."""
        ticker = self._clean_ticker(ticker)
        portfolio = await self.get_portfolio()
        existing = portfolio.find_holding(ticker)
        if existing is None:
            raise NotFoundError("Holding", ticker)
        return await self.sell_stock(ticker, existing.shares, price)

    # ------------------------------------------------------------------
    # Option actions
    # ------------------------------------------------------------------

    async def buy_option(self, order: OptionOrder) -> Transaction:
        """
        Buy option contracts at ``order.premium`` per share.

        Buying more of a contract already held merges into that holding with
        a contract-weighted average premium.
        """
        self._validate_option_order(order)
        underlying = self._clean_ticker(order.underlying)

        document = await self._session.read_latest()
        portfolio = document.portfolio
        shares = order.contracts * CONTRACT_MULTIPLIER
        cost = order.premium * shares
        if cost > portfolio.cash:
            raise InsufficientCashError(str(cost), str(portfolio.cash))

        existing = portfolio.find_option(order.symbol)
        if existing:
            total_contracts = existing.contracts + order.contracts
            averaged = (
                existing.purchase_premium * existing.contracts + order.premium * order.contracts
            ) / total_contracts
            merged = replace(
                existing,
                contracts=total_contracts,
                purchase_premium=averaged,
                current_premium=order.premium,
            )
            options = [merged if o is existing else o for o in portfolio.option_holdings]
        else:
            options = [
                *portfolio.option_holdings,
                OptionHolding(
                    symbol=order.symbol,
                    underlying=underlying,
                    contracts=order.contracts,
                    purchase_premium=order.premium,
                    current_premium=order.premium,
                    option_type=order.option_type,
                    strike=order.strike,
                    expiration_date=order.expiration_date,
                ),
            ]

        txn = self._transaction(
            TransactionType.OPTION_BUY,
            underlying,
            Decimal(order.contracts),
            order.premium,
            total_amount=cost,
            option_symbol=order.symbol,
            option_type=order.option_type,
            strike=order.strike,
        )
        updated = replace(portfolio, cash=portfolio.cash - cost, option_holdings=options)
        await self._session.write(updated, [*document.transactions, txn])
        logger.info("Bought %d x %s @ %s", order.contracts, order.symbol, order.premium)
        return txn

    async def sell_option(
        self,
        symbol: str,
        contracts: int,
        premium: Optional[Decimal] = None,
    ) -> Transaction:
        """Sell contracts at ``premium`` (default: the holding's current premium)."""
        if contracts <= 0:
            raise ValidationError("OPTION_SELL requires contracts > 0")

        document = await self._session.read_latest()
        portfolio = document.portfolio
        existing = portfolio.find_option(symbol)
        if existing is None:
            raise NotFoundError("Option holding", symbol)
        if contracts > existing.contracts:
            raise InsufficientContractsError(symbol, contracts, existing.contracts)

        if premium is None:
            premium = existing.current_premium
        if premium < 0:
            raise ValidationError("OPTION_SELL requires premium >= 0")

        shares = contracts * CONTRACT_MULTIPLIER
        proceeds = premium * shares
        remaining = existing.contracts - contracts
        if remaining == 0:
            options = [o for o in portfolio.option_holdings if o is not existing]
        else:
            reduced = replace(existing, contracts=remaining, current_premium=premium)
            options = [reduced if o is existing else o for o in portfolio.option_holdings]

        txn = self._transaction(
            TransactionType.OPTION_SELL,
            existing.underlying,
            Decimal(contracts),
            premium,
            total_amount=proceeds,
            realized_pnl=(premium - existing.purchase_premium) * shares,
            option_symbol=existing.symbol,
            option_type=existing.option_type,
            strike=existing.strike,
        )
        updated = replace(portfolio, cash=portfolio.cash + proceeds, option_holdings=options)
        await self._session.write(updated, [*document.transactions, txn])
        logger.info("Sold %d x %s @ %s", contracts, symbol, premium)
        return txn

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _resolve_price(self, ticker: str, price: Optional[Decimal]) -> Decimal:
        if price is not None:
            if price <= 0:
                raise ValidationError("Price must be > 0")
            return price
        if self._market_data is None:
            raise ValidationError(f"No price given for {ticker}")
        quotes = await self._market_data.get_quotes([ticker])
        if ticker not in quotes:
            raise NotFoundError("Quote", ticker)
        return quotes[ticker].last_price

    @staticmethod
    def _clean_ticker(ticker: str) -> str:
        ticker = (ticker or "").strip().upper()
        if not ticker:
            raise ValidationError("Ticker is required")
        return ticker

    @staticmethod
    def _validate_option_order(order: OptionOrder) -> None:
        if not order.symbol:
            raise ValidationError("Option symbol is required")
        if order.contracts <= 0:
            raise ValidationError("OPTION_BUY requires contracts > 0")
        if order.premium <= 0:
            raise ValidationError("OPTION_BUY requires premium > 0")
        if order.strike <= 0:
            raise ValidationError("Strike must be > 0")

    def _transaction(
        self,
        txn_type: TransactionType,
        ticker: str,
        quantity: Decimal,
        price: Decimal,
        total_amount: Decimal,
        realized_pnl: Optional[Decimal] = None,
        option_symbol: Optional[str] = None,
        option_type: Optional[OptionType] = None,
        strike: Optional[Decimal] = None,
    ) -> Transaction:
        return Transaction(
            txn_id=str(uuid.uuid4()),
            txn_type=txn_type,
            ticker=ticker,
            quantity=quantity,
            price=price,
            total_amount=total_amount,
            timestamp=self._clock(),
            realized_pnl=realized_pnl,
            option_symbol=option_symbol,
            option_type=option_type,
            strike=strike,
        )
