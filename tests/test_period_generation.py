from datetime import date
from decimal import Decimal

import pytest

from hostel_ledger.core.exceptions import StudentNotEligibleError, StudentNotFoundError, ValidationError
from hostel_ledger.models import FeeHistory, FeeHistoryAction, FeeStatus, Hostel, MonthlyFee, StudentStatus
from hostel_ledger.repositories.fees.monthly_fee_repository import MonthlyFeeRepository


def test_first_period_has_no_carry_forward(db, hostel, student, generator):
    result = generator.generate_period_for_hostel(hostel.id, "2025-01")

    assert not result.skipped
    assert result.fees_created == 1
    assert result.carry_forward_count == 0

    fee = MonthlyFeeRepository(db).find_by_student_period(student.id, "2025-01")
    assert fee.carry_forward == Decimal("0.00")
    assert fee.total_due == Decimal("5000.00")
    assert fee.balance == Decimal("5000.00")
    assert fee.status == FeeStatus.PENDING
    assert fee.due_date == date(2025, 1, 15)


def test_generation_records_created_history(db, hostel, student, generator):
    generator.generate_period_for_hostel(hostel.id, "2025-01")
    fee = MonthlyFeeRepository(db).find_by_student_period(student.id, "2025-01")

    history = db.query(FeeHistory).filter(FeeHistory.fee_id == fee.id).all()
    assert [h.action for h in history] == [FeeHistoryAction.CREATED]


def test_second_run_for_same_period_is_skipped(db, hostel, student, generator):
    generator.generate_period_for_hostel(hostel.id, "2025-01")
    again = generator.generate_period_for_hostel(hostel.id, "2025-01")

    assert again.skipped
    assert again.reason == "already_exists"
    assert again.fees_created == 0
    assert db.query(MonthlyFee).count() == 1


def test_any_existing_fee_skips_the_whole_hostel(db, hostel, make_student, generator):
    first = make_student(name="Asha")
    make_student(name="Bilal")
    generator.ensure_fee_for_student(first.id, "2025-01")

    result = generator.generate_period_for_hostel(hostel.id, "2025-01")
    assert result.skipped
    assert db.query(MonthlyFee).count() == 1


def test_unpaid_balance_carries_into_next_period(db, hostel, student, generator):
    generator.generate_period_for_hostel(hostel.id, "2025-01")
    result = generator.generate_period_for_hostel(hostel.id, "2025-02")

    assert result.carry_forward_count == 1
    fee = MonthlyFeeRepository(db).find_by_student_period(student.id, "2025-02")
    assert fee.carry_forward == Decimal("5000.00")
    assert fee.total_due == Decimal("10000.00")
    assert fee.notes == "Carry forward: 5000.00"


def test_hostel_without_billable_students(db, hostel, make_student, generator):
    make_student(room_id=None)
    make_student(rent=None)
    make_student(status=StudentStatus.INACTIVE)

    result = generator.generate_period_for_hostel(hostel.id, "2025-01")
    assert result.skipped
    assert result.reason == "no_students"


def test_negative_rent_is_reported_not_fatal(db, hostel, make_student, generator):
    good = make_student(name="Asha")
    bad = make_student(name="Zed", rent=Decimal("-10"))

    result = generator.generate_period_for_hostel(hostel.id, "2025-01")

    assert result.students_processed == 2
    assert result.fees_created == 1
    assert result.errors == [
        {"student_id": bad.id, "error": f"Student {bad.id} is not eligible for billing: negative monthly rent -10.00"}
    ]
    assert MonthlyFeeRepository(db).find_by_student_period(good.id, "2025-01") is not None


def test_due_day_follows_previous_fee_and_clamps(db, hostel, student, generator):
    hostel.due_date_day = 31
    db.commit()

    generator.generate_period_for_hostel(hostel.id, "2025-01")
    generator.generate_period_for_hostel(hostel.id, "2025-02")
    repo = MonthlyFeeRepository(db)
    assert repo.find_by_student_period(student.id, "2025-01").due_date == date(2025, 1, 31)
    assert repo.find_by_student_period(student.id, "2025-02").due_date == date(2025, 2, 28)


def test_all_hostels_generation_continues_past_skips(db, hostel, student, make_student, generator):
    other = Hostel(name="Blue Door", is_active=True, due_date_day=5)
    db.add(other)
    db.commit()
    make_student(name="Chen", hostel_id=other.id)
    generator.generate_period_for_hostel(hostel.id, "2025-01")

    results = {r.hostel_id: r for r in generator.generate_period_for_all_hostels("2025-01")}
    assert results[hostel.id].skipped
    assert results[other.id].fees_created == 1


def test_ensure_fee_returns_existing_row(db, student, generator):
    created = generator.ensure_fee_for_student(student.id, "2025-03")
    again = generator.ensure_fee_for_student(student.id, "2025-03")

    assert again.id == created.id
    assert created.notes == "Auto-created when payment recorded"


def test_ensure_fee_requires_a_billable_student(make_student, generator):
    no_room = make_student(room_id=None)
    with pytest.raises(StudentNotEligibleError):
        generator.ensure_fee_for_student(no_room.id, "2025-03")
    with pytest.raises(StudentNotFoundError):
        generator.ensure_fee_for_student("missing", "2025-03")


def test_ensure_fee_checks_hostel(student, generator):
    with pytest.raises(ValidationError):
        generator.ensure_fee_for_student(student.id, "2025-03", hostel_id="another-hostel")
