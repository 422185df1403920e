from decimal import Decimal

from celery.schedules import crontab

from hostel_ledger.repositories.fees.monthly_fee_repository import MonthlyFeeRepository
from hostel_ledger.tasks import celery_app
from hostel_ledger.tasks.fee_tasks import run_monthly_fee_generation, run_student_cascade_repair


def test_monthly_generation_is_scheduled_on_the_first():
    entry = celery_app.conf.beat_schedule["generate-monthly-fees"]
    assert entry["task"] == "hostel_ledger.tasks.generate_monthly_fees"
    assert entry["schedule"] == crontab(minute="5", hour="0", day_of_month="1")


def test_tasks_are_registered():
    assert "hostel_ledger.tasks.generate_monthly_fees" in celery_app.tasks
    assert "hostel_ledger.tasks.repair_student_cascade" in celery_app.tasks


def test_generation_task_body(db, session_factory, hostel, student):
    results = run_monthly_fee_generation("2025-01")

    assert results == [
        {
            "hostel_id": hostel.id,
            "period": "2025-01",
            "skipped": False,
            "reason": None,
            "students_processed": 1,
            "fees_created": 1,
            "carry_forward_count": 0,
            "errors": [],
        }
    ]
    assert run_monthly_fee_generation("2025-01")[0]["reason"] == "already_exists"


def test_cascade_repair_task_body(db, session_factory, hostel, student, generator):
    generator.generate_period_for_hostel(hostel.id, "2025-01")
    generator.generate_period_for_hostel(hostel.id, "2025-02")
    repo = MonthlyFeeRepository(db)
    january = repo.find_by_student_period(student.id, "2025-01")
    january.paid_amount = Decimal("5000")
    db.commit()

    report = run_student_cascade_repair(student.id, "2025-01", hostel.id)

    assert report["updated_periods"] == ["2025-02"]
    february = repo.find_by_student_period(student.id, "2025-02")
    db.refresh(february)
    assert february.carry_forward == Decimal("0.00")
