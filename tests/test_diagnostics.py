from decimal import Decimal

import pytest

from hostel_ledger.core.exceptions import FeeNotFoundError, InconsistentLedgerError
from hostel_ledger.models import FeeStatus
from hostel_ledger.repositories.fees.monthly_fee_repository import MonthlyFeeRepository
from hostel_ledger.services.fees import LedgerDiagnosticsService


@pytest.fixture
def fees(db, hostel, student, generator):
    for period in ("2025-01", "2025-02", "2025-03"):
        generator.generate_period_for_hostel(hostel.id, period)
    repo = MonthlyFeeRepository(db)
    return [repo.find_by_student_period(student.id, p) for p in ("2025-01", "2025-02", "2025-03")]


@pytest.fixture
def diagnostics(db, dispatcher):
    return LedgerDiagnosticsService(db, dispatcher=dispatcher)


def test_diagnose_consistent_carry_forward(diagnostics, student, fees):
    diagnosis = diagnostics.diagnose_carry_forward(student.id, "2025-02")

    assert diagnosis.is_consistent
    assert diagnosis.fee_id == fees[1].id
    assert diagnosis.expected_carry_forward == Decimal("5000.00")
    assert diagnosis.breakdown.previous_fee_id == fees[0].id


def test_diagnose_stale_carry_forward(db, diagnostics, student, fees):
    fees[0].paid_amount = Decimal("5000")
    db.commit()

    diagnosis = diagnostics.diagnose_carry_forward(student.id, "2025-02")

    assert not diagnosis.is_consistent
    assert diagnosis.stored_carry_forward == Decimal("5000.00")
    assert diagnosis.expected_carry_forward == Decimal("0.00")
    assert diagnosis.discrepancy == Decimal("5000.00")
    assert diagnosis.breakdown.paid_source == "stored_paid_amount"


def test_diagnose_period_without_fee(diagnostics, student, fees):
    diagnosis = diagnostics.diagnose_carry_forward(student.id, "2025-04")
    assert diagnosis.fee_id is None
    assert diagnosis.is_consistent
    assert diagnosis.discrepancy == Decimal("0.00")
    assert diagnosis.expected_carry_forward == Decimal("15000.00")


def test_consistency_report_flags_drift(db, diagnostics, fees):
    jan = fees[0]
    jan.paid_amount = Decimal("100")
    db.commit()

    report = diagnostics.check_fee_consistency(jan.id)

    assert not report.is_consistent
    assert report.transaction_sum == Decimal("0.00")
    assert report.expected_status == FeeStatus.PENDING
    assert any("paid_amount" in issue for issue in report.issues)
    with pytest.raises(InconsistentLedgerError):
        diagnostics.check_fee_consistency(jan.id, raise_on_drift=True)


def test_consistency_report_for_clean_fee(diagnostics, fees):
    assert diagnostics.check_fee_consistency(fees[0].id).is_consistent


def test_consistency_unknown_fee(diagnostics):
    with pytest.raises(FeeNotFoundError):
        diagnostics.check_fee_consistency("missing")


def test_period_repair_rewrites_and_cascades(db, diagnostics, hostel, fees):
    jan, feb, mar = fees
    jan.paid_amount = Decimal("5000")
    db.commit()

    report = diagnostics.recalculate_carry_forward_for_period("2025-02", hostel.id)

    assert report.examined == 1
    assert report.skipped == 0
    assert report.updated == [
        {
            "fee_id": feb.id,
            "student_id": feb.student_id,
            "old_carry_forward": "5000.00",
            "new_carry_forward": "0.00",
        }
    ]
    assert feb.carry_forward == Decimal("0.00")
    db.refresh(mar)
    assert mar.carry_forward == Decimal("5000.00")


def test_period_repair_is_idempotent(diagnostics, hostel, fees):
    report = diagnostics.recalculate_carry_forward_for_period("2025-02", hostel.id)
    assert report.updated == []
    assert report.skipped == 1
