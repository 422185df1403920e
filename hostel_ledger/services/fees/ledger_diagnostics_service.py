"""
Ledger diagnostics and period-wide repair.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from hostel_ledger.core.exceptions import FeeNotFoundError, InconsistentLedgerError
from hostel_ledger.models.base.enums import FeeStatus
from hostel_ledger.models.fees.monthly_fee import MonthlyFee
from hostel_ledger.repositories.fees.fee_transaction_repository import FeeTransactionRepository
from hostel_ledger.repositories.fees.monthly_fee_repository import MonthlyFeeRepository
from hostel_ledger.services.base.base_service import BaseService
from hostel_ledger.services.fees.carry_forward_service import (
    CarryForwardBreakdown,
    CarryForwardCalculator,
)
from hostel_ledger.services.fees.cascade_service import CascadeDispatcher, CascadePropagator
from hostel_ledger.services.fees.fee_totals import derive_status
from hostel_ledger.utils.money import ZERO, differs, non_negative, to_money
from hostel_ledger.utils.periods import BillingPeriod


@dataclass
class CarryForwardDiagnosis:
    student_id: str
    period: str
    fee_id: Optional[str]
    stored_carry_forward: Optional[Decimal]
    expected_carry_forward: Decimal
    breakdown: CarryForwardBreakdown

    @property
    def discrepancy(self) -> Decimal:
        """Stored minus expected carry-forward; zero when no fee is stored."""
        if self.stored_carry_forward is None:
            return ZERO
        return to_money(self.stored_carry_forward - self.expected_carry_forward)

    @property
    def is_consistent(self) -> bool:
        if self.stored_carry_forward is None:
            return True
        return not differs(self.stored_carry_forward, self.expected_carry_forward)


@dataclass
class FeeConsistencyReport:
    fee_id: str
    stored_paid_amount: Decimal
    transaction_sum: Decimal
    expected_total_due: Decimal
    expected_balance: Decimal
    expected_status: FeeStatus
    issues: List[str] = field(default_factory=list)

    @property
    def is_consistent(self) -> bool:
        return not self.issues


@dataclass
class PeriodRepairReport:
    period: str
    hostel_id: Optional[str] = None
    examined: int = 0
    updated: List[Dict[str, Any]] = field(default_factory=list)
    skipped: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)


class LedgerDiagnosticsService(BaseService[MonthlyFee, MonthlyFeeRepository]):
    """Read-only checks plus the carry-forward repair for a whole period."""

    def __init__(
        self,
        db_session: Session,
        calculator: Optional[CarryForwardCalculator] = None,
        dispatcher: Optional[CascadeDispatcher] = None,
    ):
        super().__init__(MonthlyFeeRepository(db_session), db_session)
        self.calculator = calculator or CarryForwardCalculator(db_session)
        self.transactions = FeeTransactionRepository(db_session)
        self.dispatcher = dispatcher

    def diagnose_carry_forward(
        self,
        student_id: str,
        period: Union[str, BillingPeriod],
    ) -> CarryForwardDiagnosis:
        """Compare a stored carry-forward with what the previous period implies."""
        period = BillingPeriod.parse(period)
        breakdown = self.calculator.calculate(student_id, period)
        fee = self.repository.find_by_student_period(student_id, str(period))
        return CarryForwardDiagnosis(
            student_id=student_id,
            period=str(period),
            fee_id=fee.id if fee else None,
            stored_carry_forward=to_money(fee.carry_forward) if fee else None,
            expected_carry_forward=breakdown.carry_forward,
            breakdown=breakdown,
        )

    def check_fee_consistency(self, fee_id: str, raise_on_drift: bool = False) -> FeeConsistencyReport:
        """
        Check a fee's cached totals against its transactions.

        Raises:
            InconsistentLedgerError: when `raise_on_drift` and the paid amount drifted
        """
        fee = self.repository.find_by_id(fee_id)
        if fee is None:
            raise FeeNotFoundError(fee_id)

        transaction_sum = self.transactions.sum_for_fee(fee.id)
        stored_paid = to_money(fee.paid_amount)
        expected_total = to_money(fee.base_rent) + to_money(fee.carry_forward)
        expected_balance = non_negative(expected_total - transaction_sum)
        report = FeeConsistencyReport(
            fee_id=fee.id,
            stored_paid_amount=stored_paid,
            transaction_sum=transaction_sum,
            expected_total_due=expected_total,
            expected_balance=expected_balance,
            expected_status=derive_status(transaction_sum, expected_balance),
        )

        if differs(stored_paid, transaction_sum):
            report.issues.append(f"paid_amount {stored_paid} != transaction sum {transaction_sum}")
        if differs(fee.total_due, expected_total):
            report.issues.append(f"total_due {fee.total_due} != base_rent + carry_forward {expected_total}")
        if differs(fee.balance, expected_balance):
            report.issues.append(f"balance {fee.balance} != expected {expected_balance}")
        if fee.status != report.expected_status:
            report.issues.append(f"status {fee.status.value} != expected {report.expected_status.value}")

        if report.issues:
            self._logger.warning(
                f"Fee {fee.id} is inconsistent: {'; '.join(report.issues)}",
                extra={"fee_id": fee.id, "student_id": fee.student_id, "period": fee.period},
            )
            if raise_on_drift and differs(stored_paid, transaction_sum):
                raise InconsistentLedgerError(fee.id, stored_paid, transaction_sum)
        return report

    def recalculate_carry_forward_for_period(
        self,
        period: Union[str, BillingPeriod],
        hostel_id: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> PeriodRepairReport:
        """
        Re-derive carry-forward for every fee of one period.

        Rows are rewritten in one transaction; each rewritten student's
        later periods are then handed to the cascade dispatcher.
        """
        period = BillingPeriod.parse(period)
        report = PeriodRepairReport(period=str(period), hostel_id=hostel_id)
        propagator = CascadePropagator(self.db, calculator=self.calculator)

        with self.transaction():
            for fee in self.repository.find_for_period(str(period), hostel_id):
                report.examined += 1
                old_carry_forward = to_money(fee.carry_forward)
                try:
                    if propagator.refresh_carry_forward(fee, actor_id=actor_id):
                        report.updated.append({
                            "fee_id": fee.id,
                            "student_id": fee.student_id,
                            "old_carry_forward": str(old_carry_forward),
                            "new_carry_forward": str(fee.carry_forward),
                        })
                    else:
                        report.skipped += 1
                except (ValueError, ArithmeticError) as e:
                    self._logger.error(
                        f"Carry forward repair failed for fee {fee.id}: {e}",
                        extra={"fee_id": fee.id, "period": str(period)},
                    )
                    report.errors.append({"fee_id": fee.id, "error": str(e)})

        self._log_operation(
            "recalculate carry forward for period",
            str(period),
            {"hostel_id": hostel_id, "updated": len(report.updated), "skipped": report.skipped},
        )

        if self.dispatcher is not None:
            for row in report.updated:
                fee = self.repository.find_by_id(row["fee_id"])
                self.dispatcher.dispatch(fee.student_id, fee.hostel_id, fee.period, self.db, actor_id=actor_id)
        return report
