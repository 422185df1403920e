from datetime import date
from decimal import Decimal

from hostel_ledger.models import FeeStatus, MonthlyFee, FeeTransaction, TransactionKind
from hostel_ledger.services.fees import CarryForwardCalculator


def _fee(db, student, period, total_due, paid="0"):
    fee = MonthlyFee(
        student_id=student.id,
        hostel_id=student.hostel_id,
        period=period,
        due_date=date(int(period[:4]), int(period[5:]), 15),
        base_rent=Decimal(total_due),
        carry_forward=Decimal("0"),
        total_due=Decimal(total_due),
        paid_amount=Decimal(paid),
        balance=Decimal(total_due) - Decimal(paid),
        status=FeeStatus.PENDING,
    )
    db.add(fee)
    db.commit()
    return fee


def test_no_previous_fee_means_zero(db, student):
    breakdown = CarryForwardCalculator(db).calculate(student.id, "2025-01")
    assert breakdown.carry_forward == Decimal("0.00")
    assert breakdown.previous_fee_id is None
    assert breakdown.paid_source == "no_previous_fee"
    assert breakdown.previous_period == "2024-12"


def test_uses_transaction_sum_over_stored_paid_amount(db, student):
    fee = _fee(db, student, "2025-01", "5000", paid="9999")
    db.add(FeeTransaction(
        fee_id=fee.id,
        student_id=student.id,
        hostel_id=student.hostel_id,
        amount=Decimal("3000"),
        kind=TransactionKind.PAYMENT,
        transaction_date=date(2025, 1, 5),
    ))
    db.commit()

    breakdown = CarryForwardCalculator(db).calculate(student.id, "2025-02")
    assert breakdown.paid_source == "transactions"
    assert breakdown.actual_paid == Decimal("3000.00")
    assert breakdown.carry_forward == Decimal("2000.00")


def test_legacy_rows_fall_back_to_stored_paid_amount(db, student):
    _fee(db, student, "2025-01", "5000", paid="4500")

    breakdown = CarryForwardCalculator(db).calculate(student.id, "2025-02")
    assert breakdown.paid_source == "stored_paid_amount"
    assert breakdown.carry_forward == Decimal("500.00")


def test_overpayment_never_carries_a_credit(db, student):
    _fee(db, student, "2025-01", "5000", paid="6000")
    assert CarryForwardCalculator(db).carry_forward_for(student.id, "2025-02") == Decimal("0.00")


def test_only_the_immediately_preceding_period_counts(db, student):
    _fee(db, student, "2024-11", "5000")
    assert CarryForwardCalculator(db).carry_forward_for(student.id, "2025-01") == Decimal("0.00")
