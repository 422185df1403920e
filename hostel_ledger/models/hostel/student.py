"""
Student model.

Read-only collaborator of the ledger: rent, room assignment and
residency status decide whether a student is billed.
"""

from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Enum as SQLEnum, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hostel_ledger.models.base.base_model import TimestampModel
from hostel_ledger.models.base.enums import StudentStatus
from hostel_ledger.models.base.types import MoneyType

if TYPE_CHECKING:
    from hostel_ledger.models.hostel.hostel import Hostel


class Student(TimestampModel):
    """Hostel resident."""

    __tablename__ = "students"

    hostel_id: Mapped[str] = mapped_column(
        ForeignKey("hostels.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    full_name: Mapped[str] = mapped_column(String(255), nullable=False)

    room_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        nullable=True,
        comment="Assigned room, null when not allotted",
    )

    monthly_rent: Mapped[Optional[Decimal]] = mapped_column(
        MoneyType,
        nullable=True,
    )

    status: Mapped[StudentStatus] = mapped_column(
        SQLEnum(
            StudentStatus,
            name="student_status_enum",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=StudentStatus.ACTIVE,
    )

    hostel: Mapped["Hostel"] = relationship("Hostel", back_populates="students")

    __table_args__ = (
        Index("ix_students_hostel_status", "hostel_id", "status"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == StudentStatus.ACTIVE

    def __repr__(self) -> str:
        return f"<Student(id={self.id}, hostel_id={self.hostel_id}, status={self.status.value})>"
