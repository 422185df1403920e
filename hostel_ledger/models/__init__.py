"""
Database models for the hostel fee ledger.
"""

from hostel_ledger.models.base import (
    Base,
    BaseModel,
    TimestampModel,
    MoneyType,
    FeeHistoryAction,
    FeeStatus,
    PaymentMode,
    StudentStatus,
    TransactionKind,
)
from hostel_ledger.models.hostel import Hostel, Student
from hostel_ledger.models.fees import FeeHistory, FeeTransaction, MonthlyFee

__all__ = [
    "Base",
    "BaseModel",
    "TimestampModel",
    "MoneyType",
    "FeeHistoryAction",
    "FeeStatus",
    "PaymentMode",
    "StudentStatus",
    "TransactionKind",
    "Hostel",
    "Student",
    "FeeHistory",
    "FeeTransaction",
    "MonthlyFee",
]
