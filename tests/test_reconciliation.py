from datetime import date
from decimal import Decimal

import pytest

from hostel_ledger.core.exceptions import (
    FeeNotFoundError,
    InvalidAmountError,
    PeriodLockedError,
    TransactionNotFoundError,
    ValidationError,
)
from hostel_ledger.models import FeeHistory, FeeHistoryAction, FeeStatus, FeeTransaction, TransactionKind
from hostel_ledger.repositories.fees.monthly_fee_repository import MonthlyFeeRepository


@pytest.fixture
def january(db, hostel, student, generator):
    generator.generate_period_for_hostel(hostel.id, "2025-01")
    return MonthlyFeeRepository(db).find_by_student_period(student.id, "2025-01")


def _pay(reconciler, student, amount, period="2025-01", on=date(2025, 1, 20)):
    return reconciler.record_payment(student.id, student.hostel_id, amount, payment_date=on, period=period)


def test_partial_payment(reconciler, student, january):
    result = _pay(reconciler, student, "3000")

    fee = result.fee
    assert fee.id == january.id
    assert fee.paid_amount == Decimal("3000.00")
    assert fee.balance == Decimal("2000.00")
    assert fee.status == FeeStatus.PARTIALLY_PAID
    assert result.previous_paid_amount == Decimal("0.00")
    assert result.transaction.kind == TransactionKind.PAYMENT


def test_full_payment_marks_fee_paid(reconciler, student, january):
    _pay(reconciler, student, "3000")
    fee = _pay(reconciler, student, "2000").fee

    assert fee.paid_amount == Decimal("5000.00")
    assert fee.balance == Decimal("0.00")
    assert fee.status == FeeStatus.FULLY_PAID


def test_overpayment_floors_balance_at_zero(reconciler, student, january):
    fee = _pay(reconciler, student, "6000").fee
    assert fee.balance == Decimal("0.00")
    assert fee.status == FeeStatus.FULLY_PAID


def test_payment_after_next_period_cascades(db, hostel, reconciler, student, generator, january):
    _pay(reconciler, student, "3000")
    generator.generate_period_for_hostel(hostel.id, "2025-02")
    february = MonthlyFeeRepository(db).find_by_student_period(student.id, "2025-02")
    assert february.carry_forward == Decimal("2000.00")
    assert february.total_due == Decimal("7000.00")

    result = _pay(reconciler, student, "2000")

    assert result.cascade.status == "completed"
    assert result.cascade.report.updated_periods == ["2025-02"]
    db.refresh(february)
    assert february.carry_forward == Decimal("0.00")
    assert february.total_due == Decimal("5000.00")
    assert february.balance == Decimal("5000.00")
    assert february.status == FeeStatus.PENDING


def test_refund_is_stored_negative(reconciler, student, january):
    _pay(reconciler, student, "5000")

    result = reconciler.record_adjustment(
        january.id, "1000", kind=TransactionKind.REFUND, reason="Room downgrade", transaction_date=date(2025, 2, 1)
    )

    assert result.transaction.amount == Decimal("-1000.00")
    assert result.fee.paid_amount == Decimal("4000.00")
    assert result.fee.balance == Decimal("1000.00")
    assert result.fee.status == FeeStatus.PARTIALLY_PAID


def test_refund_cannot_exceed_net_paid(db, reconciler, student, january):
    _pay(reconciler, student, "500")

    with pytest.raises(InvalidAmountError):
        reconciler.record_adjustment(january.id, "800", kind=TransactionKind.REFUND, reason="Mistake")

    db.refresh(january)
    assert january.paid_amount == Decimal("500.00")
    assert db.query(FeeTransaction).filter(FeeTransaction.fee_id == january.id).count() == 1


def test_positive_adjustment_counts_as_paid(reconciler, january):
    result = reconciler.record_adjustment(january.id, "200", reason="Late fee")

    assert result.transaction.amount == Decimal("200.00")
    assert result.fee.paid_amount == Decimal("200.00")
    assert result.fee.balance == Decimal("4800.00")
    assert result.fee.status == FeeStatus.PARTIALLY_PAID


def test_negative_adjustment_keeps_its_sign(reconciler, student, january):
    _pay(reconciler, student, "1000")
    result = reconciler.record_adjustment(january.id, "-300", reason="Bounced cheque")

    assert result.transaction.amount == Decimal("-300.00")
    assert result.fee.paid_amount == Decimal("700.00")


@pytest.mark.parametrize("amount", ["0", "-10", "abc"])
def test_payment_amount_must_be_positive(reconciler, student, january, amount):
    with pytest.raises(InvalidAmountError):
        _pay(reconciler, student, amount)


def test_zero_adjustment_rejected(reconciler, january):
    with pytest.raises(InvalidAmountError):
        reconciler.record_adjustment(january.id, "0", reason="Nothing")


def test_adjustment_needs_reason_and_non_payment_kind(reconciler, january):
    with pytest.raises(ValidationError):
        reconciler.record_adjustment(january.id, "100", reason="  ")
    with pytest.raises(ValidationError):
        reconciler.record_adjustment(january.id, "100", kind=TransactionKind.PAYMENT, reason="x")


def test_future_payment_date_rejected(reconciler, student, january):
    with pytest.raises(ValidationError):
        _pay(reconciler, student, "100", on=date(2025, 4, 1))


def test_payment_creates_missing_fee(db, reconciler, student):
    result = reconciler.record_payment(student.id, student.hostel_id, "1500")

    assert result.fee.period == "2025-03"
    assert result.fee.notes == "Auto-created when payment recorded"
    assert result.fee.paid_amount == Decimal("1500.00")
    assert result.fee.balance == Decimal("3500.00")


def test_payment_against_unknown_fee_id(reconciler, student):
    with pytest.raises(FeeNotFoundError):
        reconciler.record_payment(student.id, student.hostel_id, "100", fee_id="nope")


def test_payment_against_other_students_fee(reconciler, make_student, january):
    other = make_student(name="Bilal")
    with pytest.raises(ValidationError):
        reconciler.record_payment(other.id, other.hostel_id, "100", fee_id=january.id)


def test_paid_amount_is_rebuilt_from_transactions(db, reconciler, student, january):
    _pay(reconciler, student, "1000")
    january.paid_amount = Decimal("4321")
    db.commit()

    fee = _pay(reconciler, student, "500").fee
    assert fee.paid_amount == Decimal("1500.00")


def test_update_transaction_recomputes_and_cascades(db, hostel, reconciler, student, generator, january):
    payment = _pay(reconciler, student, "3000").transaction
    generator.generate_period_for_hostel(hostel.id, "2025-02")

    result = reconciler.update_transaction(payment.id, amount="5000")

    assert result.fee.paid_amount == Decimal("5000.00")
    assert result.fee.status == FeeStatus.FULLY_PAID
    assert result.cascade.report.updated_periods == ["2025-02"]
    february = MonthlyFeeRepository(db).find_by_student_period(student.id, "2025-02")
    assert february.carry_forward == Decimal("0.00")


def test_update_payment_to_non_positive_rejected(reconciler, student, january):
    payment = _pay(reconciler, student, "3000").transaction
    with pytest.raises(InvalidAmountError):
        reconciler.update_transaction(payment.id, amount="0")


def test_delete_transaction_recomputes_and_cascades(db, hostel, reconciler, student, generator, january):
    payment = _pay(reconciler, student, "5000").transaction
    generator.generate_period_for_hostel(hostel.id, "2025-02")

    result = reconciler.delete_transaction(payment.id)

    assert result.fee.paid_amount == Decimal("0.00")
    assert result.fee.status == FeeStatus.PENDING
    february = MonthlyFeeRepository(db).find_by_student_period(student.id, "2025-02")
    assert february.carry_forward == Decimal("5000.00")
    assert february.total_due == Decimal("10000.00")
    assert db.get(FeeTransaction, payment.id) is None


def test_delete_unknown_transaction(reconciler):
    with pytest.raises(TransactionNotFoundError):
        reconciler.delete_transaction("missing")


def _refunded_january(reconciler, student, january):
    payment = _pay(reconciler, student, "5000").transaction
    reconciler.record_adjustment(
        january.id, "1000", kind=TransactionKind.REFUND, reason="Room downgrade", transaction_date=date(2025, 2, 1)
    )
    return payment


def test_deleting_payment_behind_a_refund_rejected(db, reconciler, student, january):
    payment = _refunded_january(reconciler, student, january)

    with pytest.raises(InvalidAmountError):
        reconciler.delete_transaction(payment.id)

    db.refresh(january)
    assert january.paid_amount == Decimal("4000.00")
    assert january.balance == Decimal("1000.00")
    assert db.get(FeeTransaction, payment.id) is not None


def test_lowering_payment_below_refunds_rejected(db, reconciler, student, january):
    payment = _refunded_january(reconciler, student, january)

    with pytest.raises(InvalidAmountError):
        reconciler.update_transaction(payment.id, amount="500")

    db.refresh(january)
    assert january.paid_amount == Decimal("4000.00")
    assert db.get(FeeTransaction, payment.id).amount == Decimal("5000.00")


def test_lowering_payment_still_covering_refunds(reconciler, student, january):
    payment = _refunded_january(reconciler, student, january)

    fee = reconciler.update_transaction(payment.id, amount="1500").fee

    assert fee.paid_amount == Decimal("500.00")
    assert fee.balance == Decimal("4500.00")


def test_payment_fee_must_match_hostel(reconciler, student, january):
    with pytest.raises(ValidationError) as exc:
        reconciler.record_payment(student.id, "other-hostel", "100", fee_id=january.id)

    assert exc.value.details["field"] == "hostel_id"


def test_recalculate_repairs_drift_once(db, reconciler, student, january):
    _pay(reconciler, student, "1000")
    january.paid_amount = Decimal("0")
    january.balance = Decimal("5000")
    january.status = FeeStatus.PENDING
    db.commit()

    first = reconciler.recalculate_fee_totals(january.id)
    assert first.drift_detected
    assert first.fee.paid_amount == Decimal("1000.00")
    assert first.fee.status == FeeStatus.PARTIALLY_PAID

    second = reconciler.recalculate_fee_totals(january.id)
    assert not second.drift_detected
    assert second.cascade is None
    actions = [h.action for h in db.query(FeeHistory).filter(FeeHistory.fee_id == january.id)]
    assert actions.count(FeeHistoryAction.RECALCULATED) == 1


def test_edit_fee_only_for_current_period(reconciler, january):
    with pytest.raises(PeriodLockedError):
        reconciler.edit_fee(january.id, base_rent="4000")


def test_edit_current_fee_rent(reconciler, student):
    fee = reconciler.generator.ensure_fee_for_student(student.id, "2025-03")

    result = reconciler.edit_fee(fee.id, base_rent="4500", due_date=date(2025, 3, 20))

    assert result.fee.base_rent == Decimal("4500.00")
    assert result.fee.total_due == Decimal("4500.00")
    assert result.fee.due_date == date(2025, 3, 20)
    assert result.cascade is not None


def test_edit_fee_due_date_must_be_in_month(reconciler, student):
    fee = reconciler.generator.ensure_fee_for_student(student.id, "2025-03")
    with pytest.raises(ValidationError):
        reconciler.edit_fee(fee.id, due_date=date(2025, 4, 2))


def test_every_write_leaves_history(db, reconciler, student, january):
    payment = _pay(reconciler, student, "1000").transaction
    reconciler.record_adjustment(january.id, "100", reason="Late fee")
    reconciler.update_transaction(payment.id, amount="900")
    reconciler.delete_transaction(payment.id)

    actions = [
        h.action
        for h in db.query(FeeHistory).filter(FeeHistory.fee_id == january.id).order_by(FeeHistory.created_at)
    ]
    assert set(actions) >= {
        FeeHistoryAction.CREATED,
        FeeHistoryAction.PAID,
        FeeHistoryAction.ADJUSTMENT,
        FeeHistoryAction.TRANSACTION_UPDATED,
        FeeHistoryAction.TRANSACTION_DELETED,
    }
