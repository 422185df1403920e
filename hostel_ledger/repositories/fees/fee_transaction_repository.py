"""
Fee transaction repository.
"""

from decimal import Decimal
from typing import List

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from hostel_ledger.models.base.enums import TransactionKind
from hostel_ledger.models.fees.fee_transaction import FeeTransaction
from hostel_ledger.repositories.base.base_repository import BaseRepository
from hostel_ledger.utils.money import to_money


class FeeTransactionRepository(BaseRepository[FeeTransaction]):
    """Repository for payments, adjustments and refunds."""

    def __init__(self, db: Session):
        super().__init__(FeeTransaction, db)

    def sum_for_fee(self, fee_id: str) -> Decimal:
        """Signed sum of all transactions recorded against a fee."""
        stmt = select(func.coalesce(func.sum(FeeTransaction.amount), 0)).where(
            FeeTransaction.fee_id == fee_id
        )
        return to_money(self.db.execute(stmt).scalar_one())

    def find_for_fee(self, fee_id: str) -> List[FeeTransaction]:
        stmt = (
            select(FeeTransaction)
            .where(FeeTransaction.fee_id == fee_id)
            .order_by(FeeTransaction.transaction_date.desc(), FeeTransaction.created_at.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def find_for_student(self, student_id: str) -> List[FeeTransaction]:
        stmt = (
            select(FeeTransaction)
            .where(FeeTransaction.student_id == student_id)
            .order_by(FeeTransaction.transaction_date.desc(), FeeTransaction.created_at.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def has_refund(self, fee_id: str) -> bool:
        stmt = (
            select(FeeTransaction.id)
            .where(FeeTransaction.fee_id == fee_id, FeeTransaction.kind == TransactionKind.REFUND)
            .limit(1)
        )
        return self.db.execute(stmt).first() is not None
