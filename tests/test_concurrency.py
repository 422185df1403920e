import threading
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.orm import sessionmaker

from hostel_ledger.config.database import build_engine
from hostel_ledger.models import Base, FeeStatus, Hostel, MonthlyFee, Student, StudentStatus
from hostel_ledger.repositories.fees.fee_transaction_repository import FeeTransactionRepository
from hostel_ledger.services.fees import CascadeDispatcher, PeriodGenerator, StudentLockRegistry
from hostel_ledger.services.fees.fee_reconciliation_service import FeeReconciliationService

PAYMENTS_PER_THREAD = 4


@pytest.fixture
def file_sessions(tmp_path):
    # One connection per thread, unlike the shared in-memory engine
    engine = build_engine(f"sqlite:///{tmp_path / 'ledger.db'}")
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    engine.dispose()


def test_concurrent_payments_for_one_student(file_sessions):
    with file_sessions() as setup:
        hostel = Hostel(name="Green Leaf", is_active=True)
        setup.add(hostel)
        setup.flush()
        student = Student(
            hostel_id=hostel.id,
            full_name="Asha",
            room_id="R-101",
            monthly_rent=Decimal("5000"),
            status=StudentStatus.ACTIVE,
        )
        setup.add(student)
        setup.commit()
        PeriodGenerator(setup).generate_period_for_hostel(hostel.id, "2025-01")
        fee_id = setup.query(MonthlyFee).filter_by(student_id=student.id).one().id
        student_id, hostel_id = student.id, hostel.id

    locks = StudentLockRegistry(backend="memory", timeout=10)
    start = threading.Barrier(2)
    errors = []

    def pay():
        session = file_sessions()
        reconciler = FeeReconciliationService(
            session,
            locks=locks,
            dispatcher=CascadeDispatcher(mode="inline", locks=locks),
            clock=lambda: date(2025, 3, 10),
        )
        try:
            start.wait()
            for _ in range(PAYMENTS_PER_THREAD):
                reconciler.record_payment(
                    student_id, hostel_id, "500", payment_date=date(2025, 1, 20), fee_id=fee_id
                )
        except Exception as e:
            errors.append(e)
        finally:
            session.close()

    workers = [threading.Thread(target=pay) for _ in range(2)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join(timeout=30)

    assert errors == []
    with file_sessions() as check:
        fee = check.get(MonthlyFee, fee_id)
        assert FeeTransactionRepository(check).sum_for_fee(fee_id) == Decimal("4000.00")
        assert fee.paid_amount == Decimal("4000.00")
        assert fee.balance == Decimal("1000.00")
        assert fee.status == FeeStatus.PARTIALLY_PAID
