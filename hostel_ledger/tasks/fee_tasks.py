"""
Ledger background tasks.

The task bodies are plain functions working on a `get_db_context` session
so they can run outside a worker; the Celery tasks only wrap them.
"""

from dataclasses import asdict
from typing import Any, Dict, List, Optional

from hostel_ledger.config.database import get_db_context
from hostel_ledger.core.exceptions import CascadeFailureError
from hostel_ledger.core.logging import get_logger
from hostel_ledger.services.fees.cascade_service import CascadeDispatcher
from hostel_ledger.services.fees.period_generation_service import PeriodGenerator
from hostel_ledger.tasks.celery_app import celery_app
from hostel_ledger.utils.periods import BillingPeriod

logger = get_logger(__name__)


def run_monthly_fee_generation(period: Optional[str] = None) -> List[Dict[str, Any]]:
    """Generate fees for every active hostel; defaults to the current month."""
    target = BillingPeriod.parse(period) if period else BillingPeriod.current()
    with get_db_context() as session:
        logger.info(f"Starting monthly fee generation for {target}", extra={"period": str(target)})
        results = PeriodGenerator(session).generate_period_for_all_hostels(target)
        created = sum(r.fees_created for r in results)
        logger.info(
            f"Monthly fee generation for {target} done: {created} fees across {len(results)} hostels",
            extra={"period": str(target)},
        )
        return [asdict(r) for r in results]


def run_student_cascade_repair(
    student_id: str,
    from_period: str,
    hostel_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Re-run the cascade for one student, raising if it fails again."""
    with get_db_context() as session:
        report = CascadeDispatcher(mode="inline").run(session, student_id, hostel_id, from_period)
        return {
            "student_id": report.student_id,
            "from_period": report.from_period,
            "periods_examined": report.periods_examined,
            "updated_periods": report.updated_periods,
        }


@celery_app.task(name="hostel_ledger.tasks.generate_monthly_fees")
def generate_monthly_fees(period: Optional[str] = None) -> List[Dict[str, Any]]:
    return run_monthly_fee_generation(period)


@celery_app.task(
    name="hostel_ledger.tasks.repair_student_cascade",
    bind=True,
    max_retries=3,
    default_retry_delay=60,
)
def repair_student_cascade(self, student_id: str, from_period: str, hostel_id: Optional[str] = None) -> Dict[str, Any]:
    try:
        return run_student_cascade_repair(student_id, from_period, hostel_id)
    except CascadeFailureError as e:
        raise self.retry(exc=e)
