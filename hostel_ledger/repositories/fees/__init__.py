from hostel_ledger.repositories.fees.monthly_fee_repository import MonthlyFeeRepository
from hostel_ledger.repositories.fees.fee_transaction_repository import FeeTransactionRepository
from hostel_ledger.repositories.fees.fee_history_repository import FeeHistoryRepository

__all__ = [
    "MonthlyFeeRepository",
    "FeeTransactionRepository",
    "FeeHistoryRepository",
]
