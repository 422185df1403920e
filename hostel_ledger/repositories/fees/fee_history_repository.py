"""
Fee history repository.
"""

from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from hostel_ledger.models.fees.fee_history import FeeHistory
from hostel_ledger.repositories.base.base_repository import BaseRepository


class FeeHistoryRepository(BaseRepository[FeeHistory]):
    """Append-only access to the fee audit trail."""

    def __init__(self, db: Session):
        super().__init__(FeeHistory, db)

    def find_for_fee(self, fee_id: str) -> List[FeeHistory]:
        stmt = (
            select(FeeHistory)
            .where(FeeHistory.fee_id == fee_id)
            .order_by(FeeHistory.created_at.asc())
        )
        return list(self.db.execute(stmt).scalars().all())
