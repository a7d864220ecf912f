"""Normalization of raw option-chain rows into OptionContractQuote records."""

import logging
import math
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from dateutil import parser as date_parser

from papertrade.domain.models import OptionType, intrinsic_value
from papertrade.domain.views import Greeks, OptionContractQuote
from papertrade.services.greeks_calculator import GreeksCalculator

logger = logging.getLogger(__name__)

# Epoch values longer than this many digits are milliseconds.
EPOCH_SECONDS_MAX_DIGITS = 10

ZERO = Decimal("0")


def parse_expiration(raw: Any) -> Optional[date]:
    """
    Parse an expiration given as a date string, date object or epoch number.

    Epoch values (numbers or digit-only strings) with more than 10 digits are
    treated as milliseconds, otherwise seconds. Returns None when the value
    cannot be interpreted.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw

    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        if text.isdigit() and len(text) > 8:
            return _parse_epoch(int(text))
        try:
            return date_parser.parse(text).date()
        except (ValueError, OverflowError):
            return None

    if isinstance(raw, (int, float)):
        return _parse_epoch(raw)

    return None


def _parse_epoch(value: float) -> Optional[date]:
    if not math.isfinite(value) or value < 0:
        return None
    digits = len(str(int(value)))
    seconds = value / 1000 if digits > EPOCH_SECONDS_MAX_DIGITS else value
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc).date()
    except (OverflowError, OSError, ValueError):
        return None


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return result if result.is_finite() else None


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return result if math.isfinite(result) else None


def _to_int(value: Any) -> int:
    number = _to_float(value)
    return int(number) if number is not None and number > 0 else 0


def _positive(value: Optional[Decimal]) -> Optional[Decimal]:
    return value if value is not None and value > 0 else None


class ContractNormalizer:
    """
    Parses provider option-chain rows into strict OptionContractQuote records.

    This is the boundary for untyped provider data: rows that cannot be
    parsed are dropped here and nothing downstream sees raw payloads.
    """

    def __init__(self, greeks_calculator: GreeksCalculator):
        self._greeks = greeks_calculator

    def normalize(
        self,
        raw_contracts: Iterable[Mapping[str, Any]],
        underlying_price: Any,
        underlying: str = "",
        now: Optional[datetime] = None,
    ) -> list[OptionContractQuote]:
        """
        Normalize raw contract rows priced against ``underlying_price``.

        Each row carries the provider leg fields (contractSymbol, strike,
        lastPrice, bid, ask, impliedVolatility, openInterest, volume) plus
        ``type`` and ``expiration``. The result may be shorter than the input:
        rows with an unparseable expiration, type or strike are dropped.
        """
        spot = _to_decimal(underlying_price)
        result: list[OptionContractQuote] = []
        dropped = 0

        for row in raw_contracts:
            if not isinstance(row, Mapping):
                dropped += 1
                continue
            quote = self._normalize_row(row, spot, underlying, now)
            if quote is None:
                dropped += 1
            else:
                result.append(quote)

        if dropped:
            logger.info(
                "Dropped %d of %d option rows for %s",
                dropped,
                dropped + len(result),
                underlying or "unknown underlying",
            )
        return result

    def normalize_chain(
        self,
        payload: Mapping[str, Any],
        underlying_price: Any = None,
        now: Optional[datetime] = None,
    ) -> list[OptionContractQuote]:
        """
        Flatten and normalize a grouped option-chain payload.

        Uses the payload's quote price when ``underlying_price`` is not given;
        returns an empty list when no usable price exists.
        """
        if underlying_price is None:
            underlying_price = (payload.get("quote") or {}).get("regularMarketPrice")
        if _positive(_to_decimal(underlying_price)) is None:
            logger.warning(
                "No underlying price for option chain %s",
                payload.get("underlyingSymbol", "?"),
            )
            return []

        underlying = str(payload.get("underlyingSymbol") or "").upper()
        return self.normalize(
            flatten_chain(payload),
            underlying_price,
            underlying=underlying,
            now=now,
        )

    def _normalize_row(
        self,
        row: Mapping[str, Any],
        spot: Optional[Decimal],
        underlying: str,
        now: Optional[datetime],
    ) -> Optional[OptionContractQuote]:
        symbol = row.get("contractSymbol")
        expiration = parse_expiration(row.get("expiration"))
        strike = _positive(_to_decimal(row.get("strike")))
        try:
            option_type = OptionType(str(row.get("type", "")).lower())
        except ValueError:
            option_type = None

        if not symbol or expiration is None or strike is None or option_type is None:
            logger.debug("Skipping unparseable option row: %r", row)
            return None

        last_price = _positive(_to_decimal(row.get("lastPrice")))
        bid = _positive(_to_decimal(row.get("bid")))
        ask = _positive(_to_decimal(row.get("ask")))
        price = last_price or bid or ask or ZERO

        # Stale quotes on deep in-the-money contracts often print below intrinsic.
        if spot is not None and spot > 0:
            floor = intrinsic_value(option_type, spot, strike)
            if floor > price:
                price = floor

        implied_volatility = _to_float(row.get("impliedVolatility"))

        if spot is not None and spot > 0:
            greeks = self._greeks.compute_greeks(
                option_type, spot, strike, expiration, implied_volatility, now=now
            )
        else:
            greeks = Greeks.unavailable(implied_volatility)

        return OptionContractQuote(
            symbol=str(symbol),
            underlying=str(row.get("underlying") or underlying).upper(),
            strike=strike,
            expiration_date=expiration,
            option_type=option_type,
            price=price,
            last_price=last_price or ZERO,
            bid=bid or ZERO,
            ask=ask or ZERO,
            implied_volatility=implied_volatility,
            greeks=greeks,
            volume=_to_int(row.get("volume")),
            open_interest=_to_int(row.get("openInterest")),
        )


def flatten_chain(payload: Mapping[str, Any]) -> list[dict[str, Any]]:
    """
    Turn a grouped-by-expiration chain payload into flat raw rows.

    Expected shape: {"underlyingSymbol", "options": [{"expirationDate",
    "calls": [...], "puts": [...]}], "quote": {"regularMarketPrice"}}.
    """
    underlying = str(payload.get("underlyingSymbol") or "").upper()
    rows: list[dict[str, Any]] = []
    for group in payload.get("options") or []:
        expiration = group.get("expirationDate")
        for option_type, legs in (("call", group.get("calls")), ("put", group.get("puts"))):
            for leg in legs or []:
                rows.append(
                    {
                        **leg,
                        "type": option_type,
                        "expiration": expiration,
                        "underlying": underlying,
                    }
                )
    return rows
