from hostel_ledger.schemas.fees.monthly_fee import (
    AdjustmentCreate,
    FeeGenerationRequest,
    FeeHistoryResponse,
    FeeTransactionResponse,
    MonthlyFeeResponse,
    MonthlyFeeUpdate,
    PaymentCreate,
    TransactionUpdate,
)
from hostel_ledger.schemas.fees.results import (
    CarryForwardBreakdownResponse,
    CarryForwardDiagnosisResponse,
    CascadeOutcomeResponse,
    CascadeReportResponse,
    FeeConsistencyResponse,
    GenerationResultResponse,
    PeriodRepairResponse,
    ReconciliationResponse,
    VersionResponse,
)

__all__ = [
    "AdjustmentCreate",
    "FeeGenerationRequest",
    "FeeHistoryResponse",
    "FeeTransactionResponse",
    "MonthlyFeeResponse",
    "MonthlyFeeUpdate",
    "PaymentCreate",
    "TransactionUpdate",
    "CarryForwardBreakdownResponse",
    "CarryForwardDiagnosisResponse",
    "CascadeOutcomeResponse",
    "CascadeReportResponse",
    "FeeConsistencyResponse",
    "GenerationResultResponse",
    "PeriodRepairResponse",
    "ReconciliationResponse",
    "VersionResponse",
]
