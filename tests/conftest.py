import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.pool import StaticPool

from hostel_ledger.config.database import build_engine, configure_database
from hostel_ledger.models import Base, Hostel, Student, StudentStatus
from hostel_ledger.services.fees import (
    CascadeDispatcher,
    MonthlyFeeLedgerService,
    PeriodGenerator,
    StudentLockRegistry,
)
from hostel_ledger.services.fees.fee_reconciliation_service import FeeReconciliationService

TODAY = date(2025, 3, 10)


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return configure_database(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    return lambda: TODAY


@pytest.fixture
def locks():
    return StudentLockRegistry(backend="memory", timeout=2)


@pytest.fixture
def dispatcher(locks, session_factory):
    return CascadeDispatcher(mode="inline", locks=locks, session_factory=session_factory)


@pytest.fixture
def hostel(db):
    hostel = Hostel(name="Green Leaf", is_active=True, due_date_day=None)
    db.add(hostel)
    db.commit()
    return hostel


@pytest.fixture
def make_student(db, hostel):
    def _make(name="Asha", rent=Decimal("5000"), room_id="R-101", status=StudentStatus.ACTIVE, hostel_id=None):
        student = Student(
            hostel_id=hostel_id or hostel.id,
            full_name=name,
            room_id=room_id,
            monthly_rent=rent,
            status=status,
        )
        db.add(student)
        db.commit()
        return student

    return _make


@pytest.fixture
def student(make_student):
    return make_student()


@pytest.fixture
def generator(db):
    return PeriodGenerator(db)


@pytest.fixture
def reconciler(db, generator, locks, dispatcher, clock):
    return FeeReconciliationService(
        db,
        generator=generator,
        locks=locks,
        dispatcher=dispatcher,
        clock=clock,
    )


@pytest.fixture
def ledger(db, locks, dispatcher, clock):
    return MonthlyFeeLedgerService(db, locks=locks, dispatcher=dispatcher, clock=clock)
