"""
Monthly fee repository.

Period-aware lookups used by generation, reconciliation and cascade.
Period tokens are ``YYYY-MM`` strings, so string comparison is
chronological.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from hostel_ledger.models.base.enums import FeeStatus
from hostel_ledger.models.fees.monthly_fee import MonthlyFee
from hostel_ledger.repositories.base.base_repository import BaseRepository


class MonthlyFeeRepository(BaseRepository[MonthlyFee]):
    """Repository for monthly fee records."""

    def __init__(self, db: Session):
        super().__init__(MonthlyFee, db)

    def find_by_student_period(self, student_id: str, period: str) -> Optional[MonthlyFee]:
        stmt = select(MonthlyFee).where(
            MonthlyFee.student_id == student_id,
            MonthlyFee.period == period,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_for_update(self, fee_id: str) -> Optional[MonthlyFee]:
        """Re-read a fee with a row lock, refreshing any cached state."""
        stmt = (
            select(MonthlyFee)
            .where(MonthlyFee.id == fee_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def exists_for_hostel_period(self, hostel_id: str, period: str) -> bool:
        """True if any fee exists for the hostel in the period."""
        stmt = (
            select(MonthlyFee.id)
            .where(MonthlyFee.hostel_id == hostel_id, MonthlyFee.period == period)
            .limit(1)
        )
        return self.db.execute(stmt).first() is not None

    def find_later_for_student(self, student_id: str, period: str) -> List[MonthlyFee]:
        """Fees strictly after `period`, oldest first."""
        stmt = (
            select(MonthlyFee)
            .where(MonthlyFee.student_id == student_id, MonthlyFee.period > period)
            .order_by(MonthlyFee.period.asc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def find_for_period(self, period: str, hostel_id: Optional[str] = None) -> List[MonthlyFee]:
        stmt = select(MonthlyFee).where(MonthlyFee.period == period)
        if hostel_id:
            stmt = stmt.where(MonthlyFee.hostel_id == hostel_id)
        stmt = stmt.order_by(MonthlyFee.student_id)
        return list(self.db.execute(stmt).scalars().all())

    def search(
        self,
        hostel_id: Optional[str] = None,
        period: Optional[str] = None,
        student_id: Optional[str] = None,
        status: Optional[FeeStatus] = None,
        before_period: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[MonthlyFee]:
        """Filtered listing, newest period first."""
        stmt = select(MonthlyFee)
        if hostel_id:
            stmt = stmt.where(MonthlyFee.hostel_id == hostel_id)
        if period:
            stmt = stmt.where(MonthlyFee.period == period)
        if student_id:
            stmt = stmt.where(MonthlyFee.student_id == student_id)
        if status:
            stmt = stmt.where(MonthlyFee.status == status)
        if before_period:
            stmt = stmt.where(MonthlyFee.period < before_period)
        stmt = (
            stmt.order_by(MonthlyFee.period.desc(), MonthlyFee.student_id)
            .offset(skip)
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all())

    def distinct_periods(self, hostel_id: Optional[str] = None) -> List[str]:
        """Periods that have at least one fee, newest first."""
        stmt = select(MonthlyFee.period).distinct()
        if hostel_id:
            stmt = stmt.where(MonthlyFee.hostel_id == hostel_id)
        stmt = stmt.order_by(MonthlyFee.period.desc())
        return list(self.db.execute(stmt).scalars().all())
