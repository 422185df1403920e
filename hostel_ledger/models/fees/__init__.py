"""
Fee ledger models.
"""

from hostel_ledger.models.fees.monthly_fee import MonthlyFee
from hostel_ledger.models.fees.fee_transaction import FeeTransaction
from hostel_ledger.models.fees.fee_history import FeeHistory

__all__ = ["MonthlyFee", "FeeTransaction", "FeeHistory"]
