"""
Fee audit sink.

Writes fee history rows in the caller's session so the audit entry
commits or rolls back together with the change it describes.
"""

from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from hostel_ledger.core.logging import get_logger
from hostel_ledger.models.base.enums import FeeHistoryAction
from hostel_ledger.models.fees.fee_history import FeeHistory
from hostel_ledger.models.fees.monthly_fee import MonthlyFee
from hostel_ledger.repositories.fees.fee_history_repository import FeeHistoryRepository

logger = get_logger(__name__)

SNAPSHOT_FIELDS = (
    "base_rent",
    "carry_forward",
    "total_due",
    "paid_amount",
    "balance",
    "status",
    "due_date",
)


def fee_snapshot(fee: MonthlyFee) -> Dict[str, Any]:
    """JSON-safe copy of the fee fields tracked in history."""
    snapshot = {}
    for field in SNAPSHOT_FIELDS:
        value = getattr(fee, field)
        if hasattr(value, "value"):
            value = value.value
        elif value is not None and not isinstance(value, (str, int)):
            value = str(value)
        snapshot[field] = value
    return snapshot


class FeeAuditSink:
    """Append-only recorder of monthly fee changes."""

    def __init__(self, db: Session):
        self.repository = FeeHistoryRepository(db)

    def record(
        self,
        fee: MonthlyFee,
        action: FeeHistoryAction,
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None,
        actor_id: Optional[str] = None,
    ) -> FeeHistory:
        entry = FeeHistory(
            fee_id=fee.id,
            student_id=fee.student_id,
            action=action,
            old_values=old_values,
            new_values=new_values if new_values is not None else fee_snapshot(fee),
            actor_id=actor_id,
        )
        self.repository.create(entry)
        logger.debug(
            f"Fee history {action.value} recorded",
            extra={"fee_id": fee.id, "student_id": fee.student_id, "period": fee.period},
        )
        return entry
