"""
Monthly fee model.

One row per student per billing period holding the rent snapshot, the
carry-forward rolled in from the previous period and the cached
settlement totals.
"""

from datetime import date as Date
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    Date as SQLDate,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hostel_ledger.models.base.base_model import TimestampModel
from hostel_ledger.models.base.enums import FeeStatus
from hostel_ledger.models.base.types import MoneyType

if TYPE_CHECKING:
    from hostel_ledger.models.fees.fee_transaction import FeeTransaction


class MonthlyFee(TimestampModel):
    """
    Monthly fee ledger record.

    total_due = base_rent + carry_forward
    balance = max(0, total_due - paid_amount)
    paid_amount mirrors the sum of the fee's transactions.
    """

    __tablename__ = "monthly_fees"

    # ==================== Foreign Keys ====================
    student_id: Mapped[str] = mapped_column(
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    hostel_id: Mapped[str] = mapped_column(
        ForeignKey("hostels.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # ==================== Period ====================
    period: Mapped[str] = mapped_column(
        String(7),
        nullable=False,
        comment="Billing period token YYYY-MM",
    )

    due_date: Mapped[Date] = mapped_column(SQLDate, nullable=False)

    # ==================== Amounts ====================
    base_rent: Mapped[Decimal] = mapped_column(MoneyType, nullable=False, default=Decimal("0.00"))
    carry_forward: Mapped[Decimal] = mapped_column(MoneyType, nullable=False, default=Decimal("0.00"))
    total_due: Mapped[Decimal] = mapped_column(MoneyType, nullable=False, default=Decimal("0.00"))
    paid_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False, default=Decimal("0.00"))
    balance: Mapped[Decimal] = mapped_column(MoneyType, nullable=False, default=Decimal("0.00"))

    status: Mapped[FeeStatus] = mapped_column(
        SQLEnum(
            FeeStatus,
            name="fee_status_enum",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=FeeStatus.PENDING,
        index=True,
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # ==================== Relationships ====================
    transactions: Mapped[List["FeeTransaction"]] = relationship(
        "FeeTransaction",
        back_populates="fee",
        cascade="all, delete-orphan",
        order_by="FeeTransaction.transaction_date",
        lazy="select",
    )

    __table_args__ = (
        UniqueConstraint("student_id", "period", name="uq_monthly_fees_student_period"),
        Index("ix_monthly_fees_hostel_period", "hostel_id", "period"),
        Index("ix_monthly_fees_student_period", "student_id", "period"),
    )

    def __repr__(self) -> str:
        return (
            f"<MonthlyFee(id={self.id}, student_id={self.student_id}, period={self.period}, "
            f"total_due={self.total_due}, paid={self.paid_amount}, status={self.status})>"
        )
