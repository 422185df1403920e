"""
Period generator.

Creates the monthly fee rows for a hostel and billing period. A hostel
that already has any fee for the period is skipped as a whole, which
makes the monthly job safe to re-run.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from hostel_ledger.core.exceptions import (
    DuplicatePeriodRecordError,
    EntityAlreadyExistsError,
    StudentNotEligibleError,
    StudentNotFoundError,
    ValidationError,
)
from hostel_ledger.models.base.enums import FeeHistoryAction
from hostel_ledger.models.fees.monthly_fee import MonthlyFee
from hostel_ledger.models.hostel.student import Student
from hostel_ledger.repositories.fees.monthly_fee_repository import MonthlyFeeRepository
from hostel_ledger.repositories.hostel.hostel_repository import HostelRepository
from hostel_ledger.repositories.hostel.student_repository import StudentRepository
from hostel_ledger.services.audit.fee_audit_sink import FeeAuditSink
from hostel_ledger.services.base.base_service import BaseService
from hostel_ledger.services.fees.carry_forward_service import CarryForwardCalculator
from hostel_ledger.services.fees.fee_totals import apply_totals
from hostel_ledger.utils.money import ZERO, to_money
from hostel_ledger.utils.periods import BillingPeriod

SKIP_ALREADY_EXISTS = "already_exists"
SKIP_NO_STUDENTS = "no_students"

AUTO_CREATED_NOTE = "Auto-created when payment recorded"


@dataclass
class GenerationResult:
    """Outcome of generating one hostel's fees for one period."""

    hostel_id: str
    period: str
    skipped: bool = False
    reason: Optional[str] = None
    students_processed: int = 0
    fees_created: int = 0
    carry_forward_count: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)


class PeriodGenerator(BaseService[MonthlyFee, MonthlyFeeRepository]):
    """Batch and single-student creation of monthly fee rows."""

    def __init__(
        self,
        db_session: Session,
        calculator: Optional[CarryForwardCalculator] = None,
        audit: Optional[FeeAuditSink] = None,
    ):
        super().__init__(MonthlyFeeRepository(db_session), db_session)
        self.calculator = calculator or CarryForwardCalculator(db_session)
        self.audit = audit or FeeAuditSink(db_session)
        self.students = StudentRepository(db_session)
        self.hostels = HostelRepository(db_session)

    # -------------------------------------------------------------------------
    # Batch generation
    # -------------------------------------------------------------------------

    def generate_period_for_hostel(
        self,
        hostel_id: str,
        period: Union[str, BillingPeriod],
    ) -> GenerationResult:
        """
        Generate fees for every eligible student of a hostel.

        All rows are inserted in one transaction. A student that cannot be
        billed is reported in `errors` without failing the batch.
        """
        period = BillingPeriod.parse(period)
        result = GenerationResult(hostel_id=hostel_id, period=str(period))
        log = self._logger.bind(hostel_id=hostel_id, period=str(period))

        if self.repository.exists_for_hostel_period(hostel_id, str(period)):
            log.info(f"Fees for {period} already exist, skipping hostel")
            result.skipped, result.reason = True, SKIP_ALREADY_EXISTS
            return result

        students = self.students.get_active_students_with_rent(hostel_id)
        if not students:
            log.info("No billable students found")
            result.skipped, result.reason = True, SKIP_NO_STUDENTS
            return result

        default_day = self.hostels.get_due_date_default(hostel_id)
        new_fees: List[MonthlyFee] = []

        for student in students:
            result.students_processed += 1
            try:
                fee = self.build_fee(student, period, default_day, hostel_id=hostel_id)
            except StudentNotEligibleError as e:
                log.warning(e.message, extra={"student_id": student.id})
                result.errors.append({"student_id": student.id, "error": e.message})
                continue
            if fee.carry_forward > ZERO:
                result.carry_forward_count += 1
            new_fees.append(fee)

        if not new_fees:
            return result

        try:
            with self.transaction():
                self.repository.create_many(new_fees)
                for fee in new_fees:
                    self.audit.record(fee, FeeHistoryAction.CREATED)
        except EntityAlreadyExistsError:
            # A concurrent run inserted the same period first
            log.warning(DuplicatePeriodRecordError(None, str(period)).message + ", batch discarded")
            result.skipped, result.reason = True, SKIP_ALREADY_EXISTS
            result.carry_forward_count = 0
            return result

        result.fees_created = len(new_fees)
        log.info(
            f"Generated {result.fees_created} fees for {period} "
            f"({result.carry_forward_count} with carry forward, {len(result.errors)} errors)"
        )
        return result

    def generate_period_for_all_hostels(
        self,
        period: Union[str, BillingPeriod],
    ) -> List[GenerationResult]:
        """Run generation for every active hostel; one failure does not stop the rest."""
        period = BillingPeriod.parse(period)
        results = []
        for hostel_id in self.hostels.get_active_hostel_ids():
            try:
                results.append(self.generate_period_for_hostel(hostel_id, period))
            except Exception as e:
                self._rollback()
                self._logger.error(
                    f"Fee generation failed for hostel {hostel_id}: {e}",
                    exc_info=True,
                    extra={"hostel_id": hostel_id, "period": str(period)},
                )
                results.append(
                    GenerationResult(
                        hostel_id=hostel_id,
                        period=str(period),
                        skipped=True,
                        reason="error",
                        errors=[{"error": str(e)}],
                    )
                )
        return results

    # -------------------------------------------------------------------------
    # Single student
    # -------------------------------------------------------------------------

    def ensure_fee_for_student(
        self,
        student_id: str,
        period: Union[str, BillingPeriod],
        hostel_id: Optional[str] = None,
        notes: str = AUTO_CREATED_NOTE,
    ) -> MonthlyFee:
        """
        Find or create the student's fee for a period.

        Creation commits on its own so a later failure of the caller does
        not undo it. Losing an insert race returns the winner's row.
        """
        period = BillingPeriod.parse(period)
        existing = self.repository.find_by_student_period(student_id, str(period))
        if existing is not None:
            return existing

        student = self.students.find_student(student_id)
        if student is None:
            raise StudentNotFoundError(student_id)
        if hostel_id and hostel_id != student.hostel_id:
            raise ValidationError(
                f"Student {student_id} does not belong to hostel {hostel_id}",
                field="hostel_id",
            )

        default_day = self.hostels.get_due_date_default(student.hostel_id)
        fee = self.build_fee(student, period, default_day, notes=notes)

        try:
            with self.transaction():
                self.repository.create(fee)
                self.audit.record(fee, FeeHistoryAction.CREATED)
        except EntityAlreadyExistsError:
            existing = self.repository.find_by_student_period(student_id, str(period))
            if existing is None:
                raise
            self._logger.info(
                "Fee created concurrently, using existing record",
                extra={"student_id": student_id, "period": str(period)},
            )
            return existing

        self._log_operation("create monthly fee", fee.id, {"student_id": student_id, "period": str(period)})
        return fee

    def build_fee(
        self,
        student: Student,
        period: BillingPeriod,
        default_day: int,
        hostel_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> MonthlyFee:
        """Unsaved fee row for the student, with carry-forward and due date resolved."""
        base_rent = self._billable_rent(student)
        breakdown = self.calculator.calculate(student.id, period)

        fee = MonthlyFee(
            student_id=student.id,
            hostel_id=hostel_id or student.hostel_id,
            period=str(period),
            base_rent=base_rent,
            carry_forward=breakdown.carry_forward,
            paid_amount=ZERO,
            due_date=self._resolve_due_date(student.id, period, default_day),
            notes=notes,
        )
        if breakdown.carry_forward > ZERO and not notes:
            fee.notes = f"Carry forward: {breakdown.carry_forward}"
        return apply_totals(fee)

    def _billable_rent(self, student: Student) -> Decimal:
        if not student.is_active:
            raise StudentNotEligibleError(student.id, "student is not active")
        if not student.room_id:
            raise StudentNotEligibleError(student.id, "no room assigned")
        if student.monthly_rent is None:
            raise StudentNotEligibleError(student.id, "monthly rent not set")
        try:
            rent = to_money(student.monthly_rent)
        except ValueError:
            raise StudentNotEligibleError(student.id, f"malformed monthly rent {student.monthly_rent!r}")
        if rent < ZERO:
            raise StudentNotEligibleError(student.id, f"negative monthly rent {rent}")
        return rent

    def _resolve_due_date(self, student_id: str, period: BillingPeriod, default_day: int) -> date:
        """Previous fee's day of month if there is one, else the hostel default."""
        previous = self.repository.find_by_student_period(student_id, str(period.previous()))
        day = previous.due_date.day if previous is not None and previous.due_date else default_day
        return period.due_date(day)
