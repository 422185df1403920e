"""
Base models package.

Provides the declarative base, abstract base classes, custom types
and enums for all ledger models.
"""

from hostel_ledger.models.base.base_model import Base, BaseModel, TimestampModel
from hostel_ledger.models.base.types import MoneyType
from hostel_ledger.models.base.enums import (
    FeeHistoryAction,
    FeeStatus,
    PaymentMode,
    StudentStatus,
    TransactionKind,
)

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
]
