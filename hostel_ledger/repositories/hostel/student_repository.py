"""
Student directory.

Read-only view of the roster for billing purposes.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from hostel_ledger.models.base.enums import StudentStatus
from hostel_ledger.models.hostel.student import Student
from hostel_ledger.repositories.base.base_repository import BaseRepository


class StudentRepository(BaseRepository[Student]):
    """Roster lookups used by fee generation."""

    def __init__(self, db: Session):
        super().__init__(Student, db)

    def get_active_students_with_rent(self, hostel_id: str) -> List[Student]:
        """
        Active, room-assigned students of a hostel that have a rent set.

        Rent validity (non-negative) is checked by the generator so a bad
        row is reported instead of silently dropped.
        """
        stmt = (
            select(Student)
            .where(
                Student.hostel_id == hostel_id,
                Student.status == StudentStatus.ACTIVE,
                Student.room_id.is_not(None),
                Student.monthly_rent.is_not(None),
            )
            .order_by(Student.full_name)
        )
        return list(self.db.execute(stmt).scalars().all())

    def find_student(self, student_id: str) -> Optional[Student]:
        return self.find_by_id(student_id)
