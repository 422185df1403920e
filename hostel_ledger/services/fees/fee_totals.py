"""
Derived monthly fee fields.

Every code path that changes rent, carry-forward or paid amount goes
through `apply_totals` so the stored totals and status follow one rule.
"""

from decimal import Decimal
from typing import Optional

from hostel_ledger.models.base.enums import FeeStatus
from hostel_ledger.models.fees.monthly_fee import MonthlyFee
from hostel_ledger.utils.money import ZERO, non_negative, to_money


def derive_status(paid_amount: Decimal, balance: Decimal) -> FeeStatus:
    if balance <= ZERO:
        return FeeStatus.FULLY_PAID
    if paid_amount > ZERO:
        return FeeStatus.PARTIALLY_PAID
    return FeeStatus.PENDING


def apply_totals(fee: MonthlyFee, paid_amount: Optional[Decimal] = None) -> MonthlyFee:
    """Recompute total_due, balance and status in place."""
    if paid_amount is not None:
        fee.paid_amount = to_money(paid_amount)
    fee.base_rent = to_money(fee.base_rent)
    fee.carry_forward = to_money(fee.carry_forward)
    fee.total_due = fee.base_rent + fee.carry_forward
    fee.balance = non_negative(fee.total_due - to_money(fee.paid_amount))
    fee.status = derive_status(to_money(fee.paid_amount), fee.balance)
    return fee
