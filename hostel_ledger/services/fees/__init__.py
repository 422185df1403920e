"""
Monthly fee ledger services.
"""

from hostel_ledger.services.fees.carry_forward_service import (
    CarryForwardBreakdown,
    CarryForwardCalculator,
)
from hostel_ledger.services.fees.cascade_service import (
    CascadeDispatcher,
    CascadeOutcome,
    CascadePropagator,
    CascadeReport,
)
from hostel_ledger.services.fees.fee_ledger_service import MonthlyFeeLedgerService
from hostel_ledger.services.fees.fee_query_service import FeeQueryService
from hostel_ledger.services.fees.fee_reconciliation_service import (
    FeeReconciliationService,
    ReconciliationResult,
)
from hostel_ledger.services.fees.ledger_diagnostics_service import (
    CarryForwardDiagnosis,
    FeeConsistencyReport,
    LedgerDiagnosticsService,
    PeriodRepairReport,
)
from hostel_ledger.services.fees.period_generation_service import GenerationResult, PeriodGenerator
from hostel_ledger.services.fees.student_locks import StudentLockRegistry, get_lock_registry

__all__ = [
    "CarryForwardBreakdown",
    "CarryForwardCalculator",
    "CascadeDispatcher",
    "CascadeOutcome",
    "CascadePropagator",
    "CascadeReport",
    "MonthlyFeeLedgerService",
    "FeeQueryService",
    "FeeReconciliationService",
    "ReconciliationResult",
    "CarryForwardDiagnosis",
    "FeeConsistencyReport",
    "LedgerDiagnosticsService",
    "PeriodRepairReport",
    "GenerationResult",
    "PeriodGenerator",
    "StudentLockRegistry",
    "get_lock_registry",
]
