"""
Date helpers used by the ledger.

All "today" computations go through `today_local` so billing follows the
configured hostel timezone rather than the server clock.
"""

from calendar import monthrange
from datetime import date, datetime
from typing import Tuple

import pytz

from hostel_ledger.config.settings import settings


def today_local() -> date:
    """Return today's date in the configured timezone."""
    return datetime.now(pytz.timezone(settings.TIMEZONE)).date()


def month_range(year: int, month: int) -> Tuple[date, date]:
    """Return (first_day, last_day) of a given month."""
    if not (1 <= month <= 12):
        raise ValueError("Month must be between 1 and 12")
    return date(year, month, 1), date(year, month, monthrange(year, month)[1])


def clamp_day(year: int, month: int, day: int) -> date:
    """Build a date in the month, pulling `day` back to the month's last day."""
    last_day = monthrange(year, month)[1]
    return date(year, month, max(1, min(day, last_day)))
