"""
Hostel model.

Only the columns the fee ledger reads: activity flag and the default
due day used when a student has no earlier fee to copy it from.
"""

from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hostel_ledger.models.base.base_model import TimestampModel

if TYPE_CHECKING:
    from hostel_ledger.models.hostel.student import Student


class Hostel(TimestampModel):
    """Hostel (tenant) whose residents are billed monthly."""

    __tablename__ = "hostels"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        index=True,
    )

    due_date_day: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Default fee due day of month (1-31)",
    )

    students: Mapped[List["Student"]] = relationship(
        "Student",
        back_populates="hostel",
        lazy="select",
    )

    def __repr__(self) -> str:
        return f"<Hostel(id={self.id}, name={self.name!r})>"
