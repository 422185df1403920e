"""
Read side of the fee ledger.
"""

from typing import List, Optional, Union

from sqlalchemy.orm import Session

from hostel_ledger.core.exceptions import FeeNotFoundError
from hostel_ledger.models.base.enums import FeeStatus
from hostel_ledger.models.fees.fee_history import FeeHistory
from hostel_ledger.models.fees.fee_transaction import FeeTransaction
from hostel_ledger.models.fees.monthly_fee import MonthlyFee
from hostel_ledger.repositories.fees.fee_history_repository import FeeHistoryRepository
from hostel_ledger.repositories.fees.fee_transaction_repository import FeeTransactionRepository
from hostel_ledger.repositories.fees.monthly_fee_repository import MonthlyFeeRepository
from hostel_ledger.services.base.base_service import BaseService
from hostel_ledger.utils.periods import BillingPeriod


class FeeQueryService(BaseService[MonthlyFee, MonthlyFeeRepository]):

    def __init__(self, db_session: Session):
        super().__init__(MonthlyFeeRepository(db_session), db_session)
        self.transactions = FeeTransactionRepository(db_session)
        self.history = FeeHistoryRepository(db_session)

    def get_fee(self, fee_id: str) -> MonthlyFee:
        fee = self.repository.find_by_id(fee_id)
        if fee is None:
            raise FeeNotFoundError(fee_id)
        return fee

    def get_monthly_fees(
        self,
        hostel_id: Optional[str] = None,
        period: Optional[Union[str, BillingPeriod]] = None,
        student_id: Optional[str] = None,
        status: Optional[FeeStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[MonthlyFee]:
        return self.repository.search(
            hostel_id=hostel_id,
            period=str(BillingPeriod.parse(period)) if period else None,
            student_id=student_id,
            status=status,
            skip=skip,
            limit=limit,
        )

    def get_previous_fees(
        self,
        before_period: Union[str, BillingPeriod],
        hostel_id: Optional[str] = None,
        student_id: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[MonthlyFee]:
        """Fees of periods strictly before `before_period`, newest first."""
        return self.repository.search(
            hostel_id=hostel_id,
            student_id=student_id,
            before_period=str(BillingPeriod.parse(before_period)),
            skip=skip,
            limit=limit,
        )

    def get_transactions(self, fee_id: str) -> List[FeeTransaction]:
        self.get_fee(fee_id)
        return self.transactions.find_for_fee(fee_id)

    def get_student_transactions(self, student_id: str) -> List[FeeTransaction]:
        return self.transactions.find_for_student(student_id)

    def get_available_periods(self, hostel_id: Optional[str] = None) -> List[str]:
        return self.repository.distinct_periods(hostel_id)

    def get_fee_history(self, fee_id: str) -> List[FeeHistory]:
        self.get_fee(fee_id)
        return self.history.find_for_fee(fee_id)
