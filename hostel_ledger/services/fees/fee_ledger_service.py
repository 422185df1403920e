"""
Monthly fee ledger service.

Single entry point used by the API and background tasks. Wires the
generator, reconciler, propagator, diagnostics and queries onto one
session and converts their exceptions into ServiceResult failures.
"""

from datetime import date
from typing import Any, Callable, List, Optional

from sqlalchemy.orm import Session

from hostel_ledger.models.base.enums import FeeStatus, PaymentMode, TransactionKind
from hostel_ledger.models.fees.fee_history import FeeHistory
from hostel_ledger.models.fees.fee_transaction import FeeTransaction
from hostel_ledger.models.fees.monthly_fee import MonthlyFee
from hostel_ledger.repositories.fees.monthly_fee_repository import MonthlyFeeRepository
from hostel_ledger.services.audit.fee_audit_sink import FeeAuditSink
from hostel_ledger.services.base.base_service import BaseService
from hostel_ledger.services.base.service_result import ServiceResult
from hostel_ledger.services.fees.carry_forward_service import CarryForwardCalculator
from hostel_ledger.services.fees.cascade_service import CascadeDispatcher, CascadeReport
from hostel_ledger.services.fees.fee_query_service import FeeQueryService
from hostel_ledger.services.fees.fee_reconciliation_service import (
    FeeReconciliationService,
    ReconciliationResult,
)
from hostel_ledger.services.fees.ledger_diagnostics_service import (
    CarryForwardDiagnosis,
    FeeConsistencyReport,
    LedgerDiagnosticsService,
    PeriodRepairReport,
)
from hostel_ledger.services.fees.period_generation_service import GenerationResult, PeriodGenerator
from hostel_ledger.services.fees.student_locks import StudentLockRegistry, get_lock_registry
from hostel_ledger.utils.date_utils import today_local
from hostel_ledger.utils.periods import BillingPeriod


class MonthlyFeeLedgerService(BaseService[MonthlyFee, MonthlyFeeRepository]):
    """Facade over the fee ledger components."""

    def __init__(
        self,
        db_session: Session,
        locks: Optional[StudentLockRegistry] = None,
        dispatcher: Optional[CascadeDispatcher] = None,
        clock: Optional[Callable[[], date]] = None,
    ):
        super().__init__(MonthlyFeeRepository(db_session), db_session)
        self.clock = clock or today_local
        self.locks = locks or get_lock_registry()
        self.dispatcher = dispatcher or CascadeDispatcher(locks=self.locks)

        self.audit = FeeAuditSink(db_session)
        self.calculator = CarryForwardCalculator(db_session)
        self.generator = PeriodGenerator(db_session, calculator=self.calculator, audit=self.audit)
        self.reconciler = FeeReconciliationService(
            db_session,
            generator=self.generator,
            audit=self.audit,
            locks=self.locks,
            dispatcher=self.dispatcher,
            clock=self.clock,
        )
        self.diagnostics = LedgerDiagnosticsService(
            db_session, calculator=self.calculator, dispatcher=self.dispatcher
        )
        self.queries = FeeQueryService(db_session)

    def _fail(self, exception: Exception, operation: str, entity_ref: Optional[Any] = None) -> ServiceResult:
        self._rollback()
        return self._handle_exception(exception, operation, entity_ref)

    # -------------------------------------------------------------------------
    # Generation
    # -------------------------------------------------------------------------

    def generate_period_for_hostel(self, hostel_id: str, period: Optional[str] = None) -> ServiceResult[GenerationResult]:
        try:
            target = BillingPeriod.parse(period) if period else BillingPeriod.current(self.clock())
            result = self.generator.generate_period_for_hostel(hostel_id, target)
            return ServiceResult.success(result, message=result.reason or "Monthly fees generated")
        except Exception as e:
            return self._fail(e, "generate monthly fees", hostel_id)

    def generate_period_for_all_hostels(self, period: Optional[str] = None) -> ServiceResult[List[GenerationResult]]:
        try:
            target = BillingPeriod.parse(period) if period else BillingPeriod.current(self.clock())
            results = self.generator.generate_period_for_all_hostels(target)
            created = sum(r.fees_created for r in results)
            return ServiceResult.success(
                results,
                message=f"Generated {created} fees across {len(results)} hostels",
                metadata={"period": str(target), "fees_created": created},
            )
        except Exception as e:
            return self._fail(e, "generate monthly fees for all hostels", period)

    # -------------------------------------------------------------------------
    # Reconciliation
    # -------------------------------------------------------------------------

    def record_payment(
        self,
        student_id: str,
        hostel_id: Optional[str],
        amount: Any,
        payment_date: Optional[date] = None,
        period: Optional[str] = None,
        fee_id: Optional[str] = None,
        payment_mode: Optional[PaymentMode] = None,
        reference_number: Optional[str] = None,
        receipt_number: Optional[str] = None,
        notes: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> ServiceResult[ReconciliationResult]:
        try:
            result = self.reconciler.record_payment(
                student_id,
                hostel_id,
                amount,
                payment_date=payment_date,
                period=period,
                fee_id=fee_id,
                payment_mode=payment_mode,
                reference_number=reference_number,
                receipt_number=receipt_number,
                notes=notes,
                actor_id=actor_id,
            )
            return ServiceResult.success(result, message="Payment recorded successfully")
        except Exception as e:
            return self._fail(e, "record payment", student_id)

    def record_adjustment(
        self,
        fee_id: str,
        amount: Any,
        kind: TransactionKind = TransactionKind.ADJUSTMENT,
        reason: Optional[str] = None,
        transaction_date: Optional[date] = None,
        notes: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> ServiceResult[ReconciliationResult]:
        try:
            result = self.reconciler.record_adjustment(
                fee_id,
                amount,
                kind=kind,
                reason=reason,
                transaction_date=transaction_date,
                notes=notes,
                actor_id=actor_id,
            )
            return ServiceResult.success(result, message=f"{result.transaction.kind.value.capitalize()} recorded successfully")
        except Exception as e:
            return self._fail(e, "record adjustment", fee_id)

    def update_transaction(self, transaction_id: str, **changes) -> ServiceResult[ReconciliationResult]:
        try:
            result = self.reconciler.update_transaction(transaction_id, **changes)
            return ServiceResult.success(result, message="Transaction updated successfully")
        except Exception as e:
            return self._fail(e, "update transaction", transaction_id)

    def delete_transaction(self, transaction_id: str, actor_id: Optional[str] = None) -> ServiceResult[ReconciliationResult]:
        try:
            result = self.reconciler.delete_transaction(transaction_id, actor_id=actor_id)
            return ServiceResult.success(result, message="Transaction deleted successfully")
        except Exception as e:
            return self._fail(e, "delete transaction", transaction_id)

    def recalculate_fee_totals(self, fee_id: str, actor_id: Optional[str] = None) -> ServiceResult[ReconciliationResult]:
        try:
            result = self.reconciler.recalculate_fee_totals(fee_id, actor_id=actor_id)
            message = "Fee totals repaired" if result.drift_detected else "Fee totals already consistent"
            return ServiceResult.success(result, message=message)
        except Exception as e:
            return self._fail(e, "recalculate fee totals", fee_id)

    def edit_fee(self, fee_id: str, **changes) -> ServiceResult[ReconciliationResult]:
        try:
            result = self.reconciler.edit_fee(fee_id, **changes)
            return ServiceResult.success(result, message="Fee updated successfully")
        except Exception as e:
            return self._fail(e, "edit fee", fee_id)

    # -------------------------------------------------------------------------
    # Cascade and repair
    # -------------------------------------------------------------------------

    def propagate_cascade(
        self,
        student_id: str,
        from_period: str,
        hostel_id: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> ServiceResult[CascadeReport]:
        """Run the cascade synchronously, e.g. to retry a failed one."""
        try:
            report = self.dispatcher.run(self.db, student_id, hostel_id, str(BillingPeriod.parse(from_period)), actor_id)
            return ServiceResult.success(report, message=f"{report.fees_updated} later periods updated")
        except Exception as e:
            return self._fail(e, "propagate cascade", student_id)

    def recalculate_carry_forward_for_period(
        self,
        period: str,
        hostel_id: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> ServiceResult[PeriodRepairReport]:
        try:
            report = self.diagnostics.recalculate_carry_forward_for_period(period, hostel_id, actor_id=actor_id)
            return ServiceResult.success(
                report,
                message=f"Recalculated {report.examined} records: {len(report.updated)} updated, {report.skipped} unchanged",
            )
        except Exception as e:
            return self._fail(e, "recalculate carry forward", period)

    def diagnose_carry_forward(self, student_id: str, period: str) -> ServiceResult[CarryForwardDiagnosis]:
        try:
            return ServiceResult.success(self.diagnostics.diagnose_carry_forward(student_id, period))
        except Exception as e:
            return self._fail(e, "diagnose carry forward", student_id)

    def check_fee_consistency(self, fee_id: str) -> ServiceResult[FeeConsistencyReport]:
        try:
            return ServiceResult.success(self.diagnostics.check_fee_consistency(fee_id))
        except Exception as e:
            return self._fail(e, "check fee consistency", fee_id)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_fee(self, fee_id: str) -> ServiceResult[MonthlyFee]:
        try:
            return ServiceResult.success(self.queries.get_fee(fee_id))
        except Exception as e:
            return self._fail(e, "get monthly fee", fee_id)

    def get_monthly_fees(
        self,
        hostel_id: Optional[str] = None,
        period: Optional[str] = None,
        student_id: Optional[str] = None,
        status: Optional[FeeStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> ServiceResult[List[MonthlyFee]]:
        try:
            fees = self.queries.get_monthly_fees(hostel_id, period, student_id, status, skip, limit)
            return ServiceResult.success(fees, metadata={"count": len(fees)})
        except Exception as e:
            return self._fail(e, "list monthly fees", hostel_id)

    def get_previous_fees(
        self,
        before_period: Optional[str] = None,
        hostel_id: Optional[str] = None,
        student_id: Optional[str] = None,
    ) -> ServiceResult[List[MonthlyFee]]:
        try:
            before = before_period or str(BillingPeriod.current(self.clock()))
            fees = self.queries.get_previous_fees(before, hostel_id=hostel_id, student_id=student_id)
            return ServiceResult.success(fees, metadata={"count": len(fees)})
        except Exception as e:
            return self._fail(e, "list previous fees", hostel_id)

    def get_transactions(self, fee_id: str) -> ServiceResult[List[FeeTransaction]]:
        try:
            return ServiceResult.success(self.queries.get_transactions(fee_id))
        except Exception as e:
            return self._fail(e, "list fee transactions", fee_id)

    def get_student_transactions(self, student_id: str) -> ServiceResult[List[FeeTransaction]]:
        try:
            return ServiceResult.success(self.queries.get_student_transactions(student_id))
        except Exception as e:
            return self._fail(e, "list student transactions", student_id)

    def get_available_periods(self, hostel_id: Optional[str] = None) -> ServiceResult[List[str]]:
        try:
            return ServiceResult.success(self.queries.get_available_periods(hostel_id))
        except Exception as e:
            return self._fail(e, "list available periods", hostel_id)

    def get_fee_history(self, fee_id: str) -> ServiceResult[List[FeeHistory]]:
        try:
            return ServiceResult.success(self.queries.get_fee_history(fee_id))
        except Exception as e:
            return self._fail(e, "list fee history", fee_id)
