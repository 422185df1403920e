"""
Enumerations shared by ledger models and schemas.
"""

from enum import Enum


class FeeStatus(str, Enum):
    """Monthly fee settlement status."""

    PENDING = "pending"
    PARTIALLY_PAID = "partially_paid"
    FULLY_PAID = "fully_paid"


class TransactionKind(str, Enum):
    """Kind of money movement recorded against a monthly fee."""

    PAYMENT = "payment"
    ADJUSTMENT = "adjustment"
    REFUND = "refund"


class PaymentMode(str, Enum):
    """How a payment was received."""

    CASH = "cash"
    UPI = "upi"
    BANK_TRANSFER = "bank_transfer"
    CARD = "card"
    CHEQUE = "cheque"
    OTHER = "other"


class FeeHistoryAction(str, Enum):
    """Audit trail action recorded for a monthly fee."""

    CREATED = "created"
    PAID = "paid"
    ADJUSTMENT = "adjustment"
    REFUND = "refund"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    RECALCULATED = "recalculated"
    CARRY_FORWARD_RECALCULATED = "carry_forward_recalculated"
    UPDATED = "updated"


class StudentStatus(str, Enum):
    """Residency status as seen by billing."""

    ACTIVE = "active"
    INACTIVE = "inactive"
