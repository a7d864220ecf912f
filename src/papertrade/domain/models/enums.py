"""Enumerations for domain models."""

from enum import Enum


class TransactionType(str, Enum):
    """Types of portfolio transactions."""

    BUY = "BUY"
    SELL = "SELL"
    OPTION_BUY = "OPTION_BUY"
    OPTION_SELL = "OPTION_SELL"
    OPTION_EXERCISE = "OPTION_EXERCISE"
    OPTION_EXPIRE = "OPTION_EXPIRE"


class OptionType(str, Enum):
    """Option contract right."""

    CALL = "call"
    PUT = "put"
