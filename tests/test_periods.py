from datetime import date, datetime
from decimal import Decimal

import pytest
import pytz
from pydantic import ValidationError as PydanticValidationError

from hostel_ledger.config.settings import Settings, settings
from hostel_ledger.core.exceptions import InvalidPeriodError
from hostel_ledger.utils.date_utils import today_local
from hostel_ledger.utils.money import differs, non_negative, to_money
from hostel_ledger.utils.periods import BillingPeriod


def test_parse_and_format():
    period = BillingPeriod.parse("2025-01")
    assert period == BillingPeriod(2025, 1)
    assert str(period) == "2025-01"
    assert BillingPeriod.parse(period) is period


@pytest.mark.parametrize("value", ["2025-13", "2025-00", "2025-1", "25-01", "", None, "2025/01"])
def test_parse_rejects_malformed_tokens(value):
    with pytest.raises(InvalidPeriodError):
        BillingPeriod.parse(value)


def test_previous_and_next_cross_year_boundaries():
    assert str(BillingPeriod(2025, 1).previous()) == "2024-12"
    assert str(BillingPeriod(2024, 12).next()) == "2025-01"


def test_periods_order_chronologically():
    periods = [BillingPeriod(2025, 2), BillingPeriod(2024, 12), BillingPeriod(2025, 1)]
    assert [str(p) for p in sorted(periods)] == ["2024-12", "2025-01", "2025-02"]


def test_due_date_clamps_to_month_end():
    assert BillingPeriod(2025, 2).due_date(31) == date(2025, 2, 28)
    assert BillingPeriod(2024, 2).due_date(31) == date(2024, 2, 29)
    assert BillingPeriod(2025, 4).due_date(31) == date(2025, 4, 30)
    assert BillingPeriod(2025, 1).due_date(15) == date(2025, 1, 15)


def test_current_uses_given_day():
    assert str(BillingPeriod.current(date(2025, 3, 10))) == "2025-03"


def test_to_money_quantizes_to_cents():
    assert to_money("10.005") == Decimal("10.01")
    assert to_money(7) == Decimal("7.00")
    assert to_money(None) == Decimal("0.00")


@pytest.mark.parametrize("value", ["abc", "NaN", "Infinity"])
def test_to_money_rejects_non_numbers(value):
    with pytest.raises(ValueError):
        to_money(value)


def test_non_negative_and_tolerance():
    assert non_negative(Decimal("-3.00")) == Decimal("0.00")
    assert not differs(Decimal("100.00"), Decimal("100.01"))
    assert differs(Decimal("100.00"), Decimal("100.02"))


def test_today_follows_configured_timezone(monkeypatch):
    monkeypatch.setattr(settings, "TIMEZONE", "Pacific/Kiritimati")
    zone = pytz.timezone("Pacific/Kiritimati")

    before = datetime.now(zone).date()
    today = today_local()
    after = datetime.now(zone).date()

    assert today in (before, after)


def test_unknown_timezone_rejected():
    with pytest.raises(PydanticValidationError):
        Settings(TIMEZONE="Mars/Olympus_Mons")
