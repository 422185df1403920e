"""
Data access layer for the fee ledger.
"""

from hostel_ledger.repositories.base import BaseRepository
from hostel_ledger.repositories.fees import (
    FeeHistoryRepository,
    FeeTransactionRepository,
    MonthlyFeeRepository,
)
from hostel_ledger.repositories.hostel import HostelRepository, StudentRepository

__all__ = [
    "BaseRepository",
    "FeeHistoryRepository",
    "FeeTransactionRepository",
    "MonthlyFeeRepository",
    "HostelRepository",
    "StudentRepository",
]
