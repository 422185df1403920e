"""
Ledger operation result schemas.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import Field

from hostel_ledger.models.base.enums import FeeStatus
from hostel_ledger.schemas.common.base import BaseSchema
from hostel_ledger.schemas.fees.monthly_fee import FeeTransactionResponse, MonthlyFeeResponse

__all__ = [
    "CascadeReportResponse",
    "CascadeOutcomeResponse",
    "ReconciliationResponse",
    "GenerationResultResponse",
    "CarryForwardBreakdownResponse",
    "CarryForwardDiagnosisResponse",
    "FeeConsistencyResponse",
    "PeriodRepairResponse",
    "VersionResponse",
]


class CascadeReportResponse(BaseSchema):
    student_id: str
    from_period: str
    periods_examined: int
    updated_periods: List[str] = Field(default_factory=list)
    fees_updated: int = 0


class CascadeOutcomeResponse(BaseSchema):
    status: str
    report: Optional[CascadeReportResponse] = None
    error: Optional[str] = None


class ReconciliationResponse(BaseSchema):
    fee: MonthlyFeeResponse
    transaction: Optional[FeeTransactionResponse] = None
    previous_paid_amount: Decimal
    drift_detected: bool = False
    cascade: Optional[CascadeOutcomeResponse] = None


class GenerationResultResponse(BaseSchema):
    hostel_id: str
    period: str
    skipped: bool
    reason: Optional[str] = None
    students_processed: int
    fees_created: int
    carry_forward_count: int
    errors: List[Dict[str, Any]] = Field(default_factory=list)


class CarryForwardBreakdownResponse(BaseSchema):
    previous_period: str
    previous_fee_id: Optional[str] = None
    previous_total_due: Decimal
    transaction_sum: Decimal
    stored_paid_amount: Decimal
    actual_paid: Decimal
    paid_source: str
    carry_forward: Decimal


class CarryForwardDiagnosisResponse(BaseSchema):
    student_id: str
    period: str
    fee_id: Optional[str] = None
    stored_carry_forward: Optional[Decimal] = None
    expected_carry_forward: Decimal
    discrepancy: Decimal
    is_consistent: bool
    breakdown: CarryForwardBreakdownResponse


class FeeConsistencyResponse(BaseSchema):
    fee_id: str
    stored_paid_amount: Decimal
    transaction_sum: Decimal
    expected_total_due: Decimal
    expected_balance: Decimal
    expected_status: FeeStatus
    is_consistent: bool
    issues: List[str] = Field(default_factory=list)


class PeriodRepairResponse(BaseSchema):
    period: str
    hostel_id: Optional[str] = None
    examined: int
    updated: List[Dict[str, Any]] = Field(default_factory=list)
    skipped: int
    errors: List[Dict[str, Any]] = Field(default_factory=list)


class VersionResponse(BaseSchema):
    name: str
    version: str
