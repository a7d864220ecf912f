"""Black-Scholes Greeks for option contracts.

Pricing assumptions, all fixed per calculator instance:
- European exercise only. Puts carry no early-exercise premium, so Greeks
  for American-style equity options drift from market-maker values.
- Constant risk-free rate (default 4.16%, a short-term Treasury yield).
- Zero dividend yield.
"""

import logging
import math
from datetime import date, datetime
from typing import Optional, Union

from scipy.stats import norm

from papertrade.core.timezone import expiration_instant, now_eastern, to_eastern
from papertrade.domain.models import OptionType
from papertrade.domain.views import Greeks

logger = logging.getLogger(__name__)

DEFAULT_RISK_FREE_RATE = 0.0416
TRADING_DAYS_PER_YEAR = 252
CALENDAR_DAYS_PER_YEAR = 365
SECONDS_PER_DAY = 86400

Number = Union[int, float]


def black_scholes_greeks(
    option_type: OptionType,
    spot: float,
    strike: float,
    tte: float,
    rate: float,
    sigma: float,
) -> tuple[float, float, float, float]:
    """
    Closed-form Black-Scholes-Merton Greeks.

    d1 = [ln(S/K) + (r + σ²/2)T] / (σ√T)
    d2 = d1 - σ√T

    Returns (delta, gamma, theta, vega) with theta per calendar day and vega
    per 1.00 change in volatility. Raises on degenerate inputs; callers that
    must not fail go through GreeksCalculator.compute_greeks.
    """
    sqrt_t = math.sqrt(tte)
    sigma_sqrt_t = sigma * sqrt_t
    d1 = (math.log(spot / strike) + (rate + 0.5 * sigma * sigma) * tte) / sigma_sqrt_t
    d2 = d1 - sigma_sqrt_t

    pdf_d1 = norm.pdf(d1)
    discount = math.exp(-rate * tte)

    gamma = pdf_d1 / (spot * sigma_sqrt_t)
    vega = spot * pdf_d1 * sqrt_t
    decay = -(spot * pdf_d1 * sigma) / (2 * sqrt_t)

    if option_type == OptionType.CALL:
        delta = norm.cdf(d1)
        theta_annual = decay - rate * strike * discount * norm.cdf(d2)
    else:
        delta = norm.cdf(d1) - 1
        theta_annual = decay + rate * strike * discount * norm.cdf(-d2)

    return (
        float(delta),
        float(gamma),
        float(theta_annual / CALENDAR_DAYS_PER_YEAR),
        float(vega),
    )


class GreeksCalculator:
    """
    Computes Greeks for a single contract.

    Never raises: any input the model cannot price yields Greeks.unavailable
    with the implied volatility passed through unchanged.
    """

    def __init__(
        self,
        risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
        trading_day_cutoff_days: int = CALENDAR_DAYS_PER_YEAR,
    ):
        self._risk_free_rate = risk_free_rate
        self._cutoff_days = trading_day_cutoff_days

    @property
    def risk_free_rate(self) -> float:
        return self._risk_free_rate

    def time_to_expiration(
        self,
        expiration_date: date,
        now: Optional[datetime] = None,
    ) -> float:
        """
        Time to expiration in years, floored at zero.

        Contracts up to the cutoff (365 days out) are annualized over 252
        trading days; longer-dated contracts over 365 calendar days.
        """
        current = to_eastern(now) if now else now_eastern()
        seconds = (expiration_instant(expiration_date) - current).total_seconds()
        days = seconds / SECONDS_PER_DAY
        divisor = CALENDAR_DAYS_PER_YEAR if days > self._cutoff_days else TRADING_DAYS_PER_YEAR
        return max(0.0, days / divisor)

    def compute_greeks(
        self,
        option_type: OptionType,
        underlying_price: Number,
        strike: Number,
        expiration_date: date,
        implied_volatility: Optional[float],
        now: Optional[datetime] = None,
    ) -> Greeks:
        """Price one contract; see module docstring for model assumptions."""
        if implied_volatility is None:
            return Greeks.unavailable(implied_volatility)

        try:
            if implied_volatility <= 0:
                return Greeks.unavailable(implied_volatility)

            tte = self.time_to_expiration(expiration_date, now)
            if tte <= 0:
                return Greeks.unavailable(implied_volatility)

            delta, gamma, theta, vega = black_scholes_greeks(
                OptionType(option_type),
                float(underlying_price),
                float(strike),
                tte,
                self._risk_free_rate,
                float(implied_volatility),
            )
        except (ArithmeticError, ValueError, TypeError) as exc:
            logger.warning(
                "Black-Scholes calculation failed (S=%s, K=%s, iv=%s): %s",
                underlying_price,
                strike,
                implied_volatility,
                exc,
            )
            return Greeks.unavailable(implied_volatility)

        if not all(math.isfinite(v) for v in (delta, gamma, theta, vega)):
            logger.warning(
                "Non-finite Greeks for S=%s, K=%s, iv=%s",
                underlying_price,
                strike,
                implied_volatility,
            )
            return Greeks.unavailable(implied_volatility)

        return Greeks(
            delta=delta,
            gamma=gamma,
            theta=theta,
            vega=vega,
            implied_volatility=implied_volatility,
        )
