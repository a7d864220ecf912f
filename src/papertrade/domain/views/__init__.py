"""View models for service outputs."""

from papertrade.domain.views.portfolio import Quote, PortfolioSummaryView
from papertrade.domain.views.options import Greeks, OptionContractQuote

__all__ = [
    "Quote",
    "PortfolioSummaryView",
    "Greeks",
    "OptionContractQuote",
]
