"""
Monthly fee ledger schemas.

Response shapes for fees, transactions and history, plus the request
bodies accepted by the fee endpoints.
"""

from __future__ import annotations

from datetime import date as Date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import Field, field_validator

from hostel_ledger.models.base.enums import (
    FeeHistoryAction,
    FeeStatus,
    PaymentMode,
    TransactionKind,
)
from hostel_ledger.schemas.common.base import PERIOD_PATTERN, BaseDBSchema, BaseSchema

__all__ = [
    "MonthlyFeeResponse",
    "FeeTransactionResponse",
    "FeeHistoryResponse",
    "PaymentCreate",
    "AdjustmentCreate",
    "TransactionUpdate",
    "MonthlyFeeUpdate",
    "FeeGenerationRequest",
]


class MonthlyFeeResponse(BaseDBSchema):
    student_id: str
    hostel_id: str
    period: str
    due_date: Date
    base_rent: Decimal
    carry_forward: Decimal
    total_due: Decimal
    paid_amount: Decimal
    balance: Decimal
    status: FeeStatus
    notes: Optional[str] = None


class FeeTransactionResponse(BaseDBSchema):
    fee_id: str
    student_id: str
    hostel_id: str
    amount: Decimal
    kind: TransactionKind
    transaction_date: Date
    payment_mode: Optional[PaymentMode] = None
    reason: Optional[str] = None
    reference_number: Optional[str] = None
    receipt_number: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None


class FeeHistoryResponse(BaseSchema):
    id: str
    fee_id: str
    student_id: str
    action: FeeHistoryAction
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    actor_id: Optional[str] = None
    created_at: Optional[datetime] = None


class PaymentCreate(BaseSchema):
    """Payment against a student's fee; the fee is created if missing."""

    student_id: str
    hostel_id: str
    amount: Decimal = Field(..., description="Payment amount, must be positive")
    payment_date: Optional[Date] = None
    period: Optional[str] = Field(default=None, pattern=PERIOD_PATTERN, description="Billing period YYYY-MM")
    fee_id: Optional[str] = None
    payment_mode: Optional[PaymentMode] = None
    reference_number: Optional[str] = Field(default=None, max_length=100)
    receipt_number: Optional[str] = Field(default=None, max_length=50)
    notes: Optional[str] = None


class AdjustmentCreate(BaseSchema):
    amount: Decimal = Field(..., description="Adjustment keeps its sign; refunds are stored negative")
    kind: TransactionKind = TransactionKind.ADJUSTMENT
    reason: str = Field(..., min_length=1)
    transaction_date: Optional[Date] = None
    notes: Optional[str] = None

    @field_validator("kind")
    @classmethod
    def reject_payment_kind(cls, v: TransactionKind) -> TransactionKind:
        if v == TransactionKind.PAYMENT:
            raise ValueError("Use the payments endpoint to record payments")
        return v


class TransactionUpdate(BaseSchema):
    amount: Optional[Decimal] = None
    transaction_date: Optional[Date] = None
    payment_mode: Optional[PaymentMode] = None
    reference_number: Optional[str] = Field(default=None, max_length=100)
    receipt_number: Optional[str] = Field(default=None, max_length=50)
    reason: Optional[str] = None
    notes: Optional[str] = None


class MonthlyFeeUpdate(BaseSchema):
    """Editable fields of the current month's fee."""

    base_rent: Optional[Decimal] = None
    due_date: Optional[Date] = None
    notes: Optional[str] = None


class FeeGenerationRequest(BaseSchema):
    period: Optional[str] = Field(default=None, pattern=PERIOD_PATTERN)
    hostel_id: Optional[str] = Field(default=None, description="Omit to generate for all active hostels")
