"""Date and time helpers for the ledger.

Lots and consumption records are dated with timezone-free calendar days
(`datetime.date`), which order the same way as their ISO strings.
Audit and bookkeeping timestamps are timezone-aware UTC datetimes.

Usage:
    from src.utils.datetime_utils import utc_now, today

    created_at = Column(DateTime, default=utc_now)
    consumption_date = today()
"""

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def today() -> date:
    """Return the current local calendar day."""
    return date.today()

