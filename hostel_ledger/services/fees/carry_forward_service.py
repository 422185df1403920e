"""
Carry-forward calculator.

The carry-forward of a period is the unpaid remainder of the immediately
preceding period only; older periods are already folded into that
period's total_due.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union

from sqlalchemy.orm import Session

from hostel_ledger.models.fees.monthly_fee import MonthlyFee
from hostel_ledger.repositories.fees.fee_transaction_repository import FeeTransactionRepository
from hostel_ledger.repositories.fees.monthly_fee_repository import MonthlyFeeRepository
from hostel_ledger.services.base.base_service import BaseService
from hostel_ledger.utils.money import ZERO, non_negative, to_money
from hostel_ledger.utils.periods import BillingPeriod

PAID_FROM_TRANSACTIONS = "transactions"
PAID_FROM_STORED = "stored_paid_amount"
PAID_FROM_NONE = "no_previous_fee"


@dataclass
class CarryForwardBreakdown:
    """How a carry-forward figure was reached."""

    student_id: str
    target_period: str
    previous_period: str
    previous_fee_id: Optional[str] = None
    previous_total_due: Decimal = ZERO
    transaction_sum: Decimal = ZERO
    stored_paid_amount: Decimal = ZERO
    actual_paid: Decimal = ZERO
    paid_source: str = PAID_FROM_NONE
    carry_forward: Decimal = ZERO


class CarryForwardCalculator(BaseService[MonthlyFee, MonthlyFeeRepository]):
    """Pure read over the previous period's fee and its transactions."""

    def __init__(self, db_session: Session):
        super().__init__(MonthlyFeeRepository(db_session), db_session)
        self.transactions = FeeTransactionRepository(db_session)

    def calculate(
        self,
        student_id: str,
        target_period: Union[str, BillingPeriod],
    ) -> CarryForwardBreakdown:
        period = BillingPeriod.parse(target_period)
        previous_period = period.previous()
        breakdown = CarryForwardBreakdown(
            student_id=student_id,
            target_period=str(period),
            previous_period=str(previous_period),
        )

        previous = self.repository.find_by_student_period(student_id, str(previous_period))
        if previous is None:
            return breakdown

        transaction_sum = self.transactions.sum_for_fee(previous.id)
        stored_paid = to_money(previous.paid_amount)

        # Rows written before transactions were recorded only carry paid_amount
        if transaction_sum > ZERO:
            actual_paid, source = transaction_sum, PAID_FROM_TRANSACTIONS
        else:
            actual_paid, source = stored_paid, PAID_FROM_STORED

        breakdown.previous_fee_id = previous.id
        breakdown.previous_total_due = to_money(previous.total_due)
        breakdown.transaction_sum = transaction_sum
        breakdown.stored_paid_amount = stored_paid
        breakdown.actual_paid = actual_paid
        breakdown.paid_source = source
        breakdown.carry_forward = non_negative(breakdown.previous_total_due - actual_paid)

        self._logger.debug(
            f"Carry forward {breakdown.carry_forward} for {period} "
            f"(prev total_due={breakdown.previous_total_due}, paid={actual_paid} from {source})",
            extra={"student_id": student_id, "period": str(period)},
        )
        return breakdown

    def carry_forward_for(self, student_id: str, target_period: Union[str, BillingPeriod]) -> Decimal:
        return self.calculate(student_id, target_period).carry_forward
