"""
Monthly fee ledger endpoints.

Thin HTTP layer over MonthlyFeeLedgerService: every handler calls one
facade method and unwraps its ServiceResult.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from hostel_ledger.api.deps import get_actor_id, get_ledger_service, unwrap_result
from hostel_ledger.models.base.enums import FeeStatus
from hostel_ledger.schemas.common.base import PERIOD_PATTERN
from hostel_ledger.schemas.fees import (
    AdjustmentCreate,
    CarryForwardDiagnosisResponse,
    CascadeReportResponse,
    FeeConsistencyResponse,
    FeeGenerationRequest,
    FeeHistoryResponse,
    FeeTransactionResponse,
    GenerationResultResponse,
    MonthlyFeeResponse,
    MonthlyFeeUpdate,
    PaymentCreate,
    PeriodRepairResponse,
    ReconciliationResponse,
    TransactionUpdate,
)
from hostel_ledger.services.fees.fee_ledger_service import MonthlyFeeLedgerService

router = APIRouter()


# -----------------------------------------------------------------------------
# Generation and listing
# -----------------------------------------------------------------------------

@router.post("/generate", response_model=List[GenerationResultResponse])
def generate_monthly_fees(
    payload: FeeGenerationRequest,
    service: MonthlyFeeLedgerService = Depends(get_ledger_service),
):
    """Generate a period's fees for one hostel, or for every active hostel."""
    if payload.hostel_id:
        result = service.generate_period_for_hostel(payload.hostel_id, payload.period)
        return [unwrap_result(result, GenerationResultResponse)]
    return unwrap_result(service.generate_period_for_all_hostels(payload.period), GenerationResultResponse)


@router.get("", response_model=List[MonthlyFeeResponse])
def list_monthly_fees(
    hostel_id: Optional[str] = None,
    period: Optional[str] = Query(default=None, pattern=PERIOD_PATTERN),
    student_id: Optional[str] = None,
    fee_status: Optional[FeeStatus] = Query(default=None, alias="status"),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
    service: MonthlyFeeLedgerService = Depends(get_ledger_service),
):
    return unwrap_result(
        service.get_monthly_fees(
            hostel_id=hostel_id,
            period=period,
            student_id=student_id,
            status=fee_status,
            skip=skip,
            limit=limit,
        )
    )


@router.get("/previous", response_model=List[MonthlyFeeResponse])
def list_previous_fees(
    before_period: Optional[str] = Query(default=None, pattern=PERIOD_PATTERN),
    hostel_id: Optional[str] = None,
    student_id: Optional[str] = None,
    service: MonthlyFeeLedgerService = Depends(get_ledger_service),
):
    """Fees of periods before `before_period` (default: the current month)."""
    return unwrap_result(
        service.get_previous_fees(before_period, hostel_id=hostel_id, student_id=student_id)
    )


@router.get("/periods", response_model=List[str])
def list_available_periods(
    hostel_id: Optional[str] = None,
    service: MonthlyFeeLedgerService = Depends(get_ledger_service),
):
    return unwrap_result(service.get_available_periods(hostel_id))


@router.post("/periods/{period}/recalculate-carry-forward", response_model=PeriodRepairResponse)
def recalculate_carry_forward_for_period(
    period: str = Path(..., pattern=PERIOD_PATTERN),
    hostel_id: Optional[str] = None,
    service: MonthlyFeeLedgerService = Depends(get_ledger_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    return unwrap_result(
        service.recalculate_carry_forward_for_period(period, hostel_id, actor_id=actor_id),
        PeriodRepairResponse,
    )


# -----------------------------------------------------------------------------
# Payments and transactions
# -----------------------------------------------------------------------------

@router.post("/payments", response_model=ReconciliationResponse, status_code=status.HTTP_201_CREATED)
def record_payment(
    payload: PaymentCreate,
    service: MonthlyFeeLedgerService = Depends(get_ledger_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    """Record a payment; the period's fee is created first when missing."""
    return unwrap_result(
        service.record_payment(
            payload.student_id,
            payload.hostel_id,
            payload.amount,
            payment_date=payload.payment_date,
            period=payload.period,
            fee_id=payload.fee_id,
            payment_mode=payload.payment_mode,
            reference_number=payload.reference_number,
            receipt_number=payload.receipt_number,
            notes=payload.notes,
            actor_id=actor_id,
        ),
        ReconciliationResponse,
    )


@router.patch("/transactions/{transaction_id}", response_model=ReconciliationResponse)
def update_transaction(
    transaction_id: str,
    payload: TransactionUpdate,
    service: MonthlyFeeLedgerService = Depends(get_ledger_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    changes = payload.model_dump(exclude_unset=True)
    return unwrap_result(
        service.update_transaction(transaction_id, actor_id=actor_id, **changes),
        ReconciliationResponse,
    )


@router.delete("/transactions/{transaction_id}", response_model=ReconciliationResponse)
def delete_transaction(
    transaction_id: str,
    service: MonthlyFeeLedgerService = Depends(get_ledger_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    return unwrap_result(service.delete_transaction(transaction_id, actor_id=actor_id), ReconciliationResponse)


# -----------------------------------------------------------------------------
# Student views
# -----------------------------------------------------------------------------

@router.get("/students/{student_id}/transactions", response_model=List[FeeTransactionResponse])
def list_student_transactions(
    student_id: str,
    service: MonthlyFeeLedgerService = Depends(get_ledger_service),
):
    return unwrap_result(service.get_student_transactions(student_id))


@router.get("/students/{student_id}/carry-forward", response_model=CarryForwardDiagnosisResponse)
def diagnose_carry_forward(
    student_id: str,
    period: str = Query(..., pattern=PERIOD_PATTERN),
    service: MonthlyFeeLedgerService = Depends(get_ledger_service),
):
    return unwrap_result(service.diagnose_carry_forward(student_id, period), CarryForwardDiagnosisResponse)


@router.post("/students/{student_id}/cascade", response_model=CascadeReportResponse)
def propagate_cascade(
    student_id: str,
    from_period: str = Query(..., pattern=PERIOD_PATTERN),
    hostel_id: Optional[str] = None,
    service: MonthlyFeeLedgerService = Depends(get_ledger_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    """Re-run the carry-forward cascade for a student's later periods."""
    return unwrap_result(
        service.propagate_cascade(student_id, from_period, hostel_id=hostel_id, actor_id=actor_id),
        CascadeReportResponse,
    )


# -----------------------------------------------------------------------------
# Single fee
# -----------------------------------------------------------------------------

@router.get("/{fee_id}", response_model=MonthlyFeeResponse)
def get_monthly_fee(
    fee_id: str,
    service: MonthlyFeeLedgerService = Depends(get_ledger_service),
):
    return unwrap_result(service.get_fee(fee_id))


@router.patch("/{fee_id}", response_model=ReconciliationResponse)
def edit_monthly_fee(
    fee_id: str,
    payload: MonthlyFeeUpdate,
    service: MonthlyFeeLedgerService = Depends(get_ledger_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    changes = payload.model_dump(exclude_unset=True)
    return unwrap_result(service.edit_fee(fee_id, actor_id=actor_id, **changes), ReconciliationResponse)


@router.get("/{fee_id}/transactions", response_model=List[FeeTransactionResponse])
def list_fee_transactions(
    fee_id: str,
    service: MonthlyFeeLedgerService = Depends(get_ledger_service),
):
    return unwrap_result(service.get_transactions(fee_id))


@router.get("/{fee_id}/history", response_model=List[FeeHistoryResponse])
def list_fee_history(
    fee_id: str,
    service: MonthlyFeeLedgerService = Depends(get_ledger_service),
):
    return unwrap_result(service.get_fee_history(fee_id))


@router.get("/{fee_id}/consistency", response_model=FeeConsistencyResponse)
def check_fee_consistency(
    fee_id: str,
    service: MonthlyFeeLedgerService = Depends(get_ledger_service),
):
    return unwrap_result(service.check_fee_consistency(fee_id), FeeConsistencyResponse)


@router.post("/{fee_id}/adjustments", response_model=ReconciliationResponse, status_code=status.HTTP_201_CREATED)
def record_adjustment(
    fee_id: str,
    payload: AdjustmentCreate,
    service: MonthlyFeeLedgerService = Depends(get_ledger_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    """Record an adjustment or refund; refunds are stored as negative amounts."""
    return unwrap_result(
        service.record_adjustment(
            fee_id,
            payload.amount,
            kind=payload.kind,
            reason=payload.reason,
            transaction_date=payload.transaction_date,
            notes=payload.notes,
            actor_id=actor_id,
        ),
        ReconciliationResponse,
    )


@router.post("/{fee_id}/recalculate", response_model=ReconciliationResponse)
def recalculate_fee_totals(
    fee_id: str,
    service: MonthlyFeeLedgerService = Depends(get_ledger_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    """Rebuild paid amount, balance and status from the fee's transactions."""
    return unwrap_result(service.recalculate_fee_totals(fee_id, actor_id=actor_id), ReconciliationResponse)
