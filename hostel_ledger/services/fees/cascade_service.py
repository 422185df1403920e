"""
Cascade propagator.

When a period's totals change, every later period of the same student may
carry a stale carry-forward. The propagator walks those periods oldest
first and rewrites any carry-forward that moved by more than the money
tolerance. It never stops early: a later period can be stale even when an
intermediate one is not.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, List, Optional, Union

from sqlalchemy.orm import Session

from hostel_ledger.config.settings import settings
from hostel_ledger.core.exceptions import CascadeFailureError, LedgerLockTimeoutError
from hostel_ledger.core.logging import get_logger
from hostel_ledger.models.base.enums import FeeHistoryAction
from hostel_ledger.models.fees.monthly_fee import MonthlyFee
from hostel_ledger.repositories.fees.monthly_fee_repository import MonthlyFeeRepository
from hostel_ledger.services.audit.fee_audit_sink import FeeAuditSink, fee_snapshot
from hostel_ledger.services.base.base_service import BaseService
from hostel_ledger.services.fees.carry_forward_service import CarryForwardCalculator
from hostel_ledger.services.fees.fee_totals import apply_totals
from hostel_ledger.services.fees.student_locks import StudentLockRegistry, get_lock_registry
from hostel_ledger.utils.money import differs, to_money
from hostel_ledger.utils.periods import BillingPeriod

logger = get_logger(__name__)

CASCADE_COMPLETED = "completed"
CASCADE_SCHEDULED = "scheduled"
CASCADE_FAILED = "failed"


@dataclass
class CascadeReport:
    """Periods examined and rewritten by one propagation run."""

    student_id: str
    from_period: str
    periods_examined: int = 0
    updated_periods: List[str] = field(default_factory=list)

    @property
    def fees_updated(self) -> int:
        return len(self.updated_periods)


@dataclass
class CascadeOutcome:
    """What happened to the cascade triggered by a ledger write."""

    status: str
    report: Optional[CascadeReport] = None
    future: Optional[Future] = None
    error: Optional[str] = None


class CascadePropagator(BaseService[MonthlyFee, MonthlyFeeRepository]):
    """Sequential carry-forward refresh of a student's later periods."""

    def __init__(
        self,
        db_session: Session,
        calculator: Optional[CarryForwardCalculator] = None,
        audit: Optional[FeeAuditSink] = None,
        epsilon: Optional[Decimal] = None,
    ):
        super().__init__(MonthlyFeeRepository(db_session), db_session)
        self.calculator = calculator or CarryForwardCalculator(db_session)
        self.audit = audit or FeeAuditSink(db_session)
        self.epsilon = epsilon if epsilon is not None else to_money(settings.MONEY_EPSILON)

    def propagate(
        self,
        student_id: str,
        changed_period: Union[str, BillingPeriod],
        hostel_id: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> CascadeReport:
        """Refresh every fee after `changed_period` in one transaction."""
        changed_period = BillingPeriod.parse(changed_period)
        report = CascadeReport(student_id=student_id, from_period=str(changed_period))

        with self.transaction():
            for fee in self.repository.find_later_for_student(student_id, str(changed_period)):
                report.periods_examined += 1
                if self.refresh_carry_forward(fee, actor_id=actor_id):
                    report.updated_periods.append(fee.period)

        if report.updated_periods:
            self._logger.info(
                f"Cascade from {changed_period} updated {report.fees_updated} "
                f"of {report.periods_examined} later periods",
                extra={"student_id": student_id, "hostel_id": hostel_id},
            )
        return report

    def refresh_carry_forward(self, fee: MonthlyFee, actor_id: Optional[str] = None) -> bool:
        """
        Recompute one fee's carry-forward from its preceding period.

        Flushes the change so the next period's calculation reads it.
        Returns True when the stored value was rewritten.
        """
        expected = self.calculator.carry_forward_for(fee.student_id, fee.period)
        if not differs(expected, fee.carry_forward, self.epsilon):
            return False

        old_values = fee_snapshot(fee)
        fee.carry_forward = expected
        apply_totals(fee)
        self.db.flush()
        self.audit.record(
            fee,
            FeeHistoryAction.CARRY_FORWARD_RECALCULATED,
            old_values=old_values,
            actor_id=actor_id,
        )
        self._logger.debug(
            f"Carry forward {old_values['carry_forward']} -> {fee.carry_forward}",
            extra={"student_id": fee.student_id, "period": fee.period, "fee_id": fee.id},
        )
        return True


class CascadeDispatcher:
    """
    Runs the cascade after the primary write has committed.

    Inline mode reuses the caller's session on the caller's thread.
    Background mode submits the run to a worker pool with a fresh session
    per job. Either way the cascade holds the student's lock, and any
    failure is logged rather than raised to the caller.
    """

    def __init__(
        self,
        mode: Optional[str] = None,
        locks: Optional[StudentLockRegistry] = None,
        session_factory: Optional[Callable[[], Session]] = None,
        max_workers: Optional[int] = None,
    ):
        self.mode = mode or settings.CASCADE_MODE
        self.locks = locks or get_lock_registry()
        self._session_factory = session_factory
        self._max_workers = max_workers or settings.CASCADE_MAX_WORKERS
        self._executor: Optional[ThreadPoolExecutor] = None

    @property
    def executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._max_workers,
                thread_name_prefix="fee-cascade",
            )
        return self._executor

    def dispatch(
        self,
        student_id: str,
        hostel_id: Optional[str],
        from_period: str,
        db_session: Session,
        actor_id: Optional[str] = None,
    ) -> CascadeOutcome:
        if self.mode == "background":
            future = self.executor.submit(
                self._run_in_new_session, student_id, hostel_id, from_period, actor_id
            )
            return CascadeOutcome(status=CASCADE_SCHEDULED, future=future)

        try:
            report = self.run(db_session, student_id, hostel_id, from_period, actor_id)
        except CascadeFailureError as e:
            self._schedule_retry(student_id, hostel_id, from_period)
            return CascadeOutcome(status=CASCADE_FAILED, error=e.message)
        return CascadeOutcome(status=CASCADE_COMPLETED, report=report)

    def _schedule_retry(self, student_id: str, hostel_id: Optional[str], from_period: str) -> None:
        if not settings.CASCADE_RETRY_VIA_CELERY:
            return
        from hostel_ledger.tasks.fee_tasks import repair_student_cascade

        repair_student_cascade.delay(student_id, from_period, hostel_id)
        logger.info(
            "Cascade retry queued",
            extra={"student_id": student_id, "hostel_id": hostel_id, "period": from_period},
        )

    def run(
        self,
        db_session: Session,
        student_id: str,
        hostel_id: Optional[str],
        from_period: str,
        actor_id: Optional[str] = None,
    ) -> CascadeReport:
        """
        Propagate under the student's lock.

        Raises:
            CascadeFailureError: after logging, when the run could not finish
        """
        try:
            with self.locks.hold(student_id):
                return CascadePropagator(db_session).propagate(
                    student_id, from_period, hostel_id=hostel_id, actor_id=actor_id
                )
        except Exception as e:
            reason = e.message if isinstance(e, LedgerLockTimeoutError) else str(e)
            failure = CascadeFailureError(student_id, from_period, reason)
            logger.error(
                failure.message,
                exc_info=True,
                extra={"student_id": student_id, "hostel_id": hostel_id, "period": from_period},
            )
            raise failure from e

    def _run_in_new_session(
        self,
        student_id: str,
        hostel_id: Optional[str],
        from_period: str,
        actor_id: Optional[str],
    ) -> Optional[CascadeReport]:
        session_factory = self._session_factory
        if session_factory is None:
            from hostel_ledger.config.database import get_session_factory

            session_factory = get_session_factory()
        session = session_factory()
        try:
            return self.run(session, student_id, hostel_id, from_period, actor_id)
        except CascadeFailureError:
            self._schedule_retry(student_id, hostel_id, from_period)
            return None
        finally:
            session.close()

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None
