"""
Billing period value type.

A period is a calendar month written as ``YYYY-MM``. The string form sorts
chronologically, which is what the ledger relies on when it walks later
months.
"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

from hostel_ledger.core.exceptions import InvalidPeriodError
from hostel_ledger.utils.date_utils import clamp_day, month_range, today_local

_PERIOD_RE = re.compile(r"^(\d{4})-(\d{2})$")


@dataclass(frozen=True, order=True)
class BillingPeriod:
    year: int
    month: int

    def __post_init__(self):
        if not 1 <= self.month <= 12 or self.year < 1:
            raise InvalidPeriodError(f"{self.year}-{self.month}")

    @classmethod
    def parse(cls, value: Union[str, "BillingPeriod"]) -> "BillingPeriod":
        if isinstance(value, BillingPeriod):
            return value
        match = _PERIOD_RE.match(str(value).strip()) if value is not None else None
        if not match:
            raise InvalidPeriodError(value)
        return cls(int(match.group(1)), int(match.group(2)))

    @classmethod
    def from_date(cls, value: date) -> "BillingPeriod":
        return cls(value.year, value.month)

    @classmethod
    def current(cls, today: Optional[date] = None) -> "BillingPeriod":
        return cls.from_date(today or today_local())

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return month_range(self.year, self.month)[1]

    def previous(self) -> "BillingPeriod":
        return self.from_date(self.first_day - relativedelta(months=1))

    def next(self) -> "BillingPeriod":
        return self.from_date(self.first_day + relativedelta(months=1))

    def due_date(self, day: int) -> date:
        """Due date on `day`, clamped to the end of short months."""
        return clamp_day(self.year, self.month, day)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"
