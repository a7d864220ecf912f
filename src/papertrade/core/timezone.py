"""Timezone utilities for US/Eastern market time."""

from datetime import date, datetime, time

import pytz

EASTERN_TZ = pytz.timezone("US/Eastern")

# Listed equity options stop trading at the regular-session close.
MARKET_CLOSE = time(16, 0)


def now_eastern() -> datetime:
    """Return current time in US/Eastern timezone."""
    return datetime.now(EASTERN_TZ)


def to_eastern(dt: datetime) -> datetime:
    """Convert a datetime to US/Eastern timezone."""
    if dt.tzinfo is None:
        # Assume naive datetime is already Eastern
        return EASTERN_TZ.localize(dt)
    return dt.astimezone(EASTERN_TZ)


def expiration_instant(expiration_date: date) -> datetime:
    """Return the moment a contract expiring on ``expiration_date`` stops trading."""
    return EASTERN_TZ.localize(datetime.combine(expiration_date, MARKET_CLOSE))
