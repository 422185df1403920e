"""
Fee transaction model.

Signed money movements against a monthly fee: payments are positive,
refunds negative, adjustments carry the caller's sign.
"""

from datetime import date as Date
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    Date as SQLDate,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hostel_ledger.models.base.base_model import TimestampModel
from hostel_ledger.models.base.enums import PaymentMode, TransactionKind
from hostel_ledger.models.base.types import MoneyType

if TYPE_CHECKING:
    from hostel_ledger.models.fees.monthly_fee import MonthlyFee


class FeeTransaction(TimestampModel):
    """Payment, adjustment or refund recorded against a monthly fee."""

    __tablename__ = "fee_transactions"

    fee_id: Mapped[str] = mapped_column(
        ForeignKey("monthly_fees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    student_id: Mapped[str] = mapped_column(
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    hostel_id: Mapped[str] = mapped_column(
        ForeignKey("hostels.id", ondelete="RESTRICT"),
        nullable=False,
    )

    amount: Mapped[Decimal] = mapped_column(
        MoneyType,
        nullable=False,
        comment="Signed amount; refunds are negative",
    )

    kind: Mapped[TransactionKind] = mapped_column(
        SQLEnum(
            TransactionKind,
            name="fee_transaction_kind_enum",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=TransactionKind.PAYMENT,
        index=True,
    )

    transaction_date: Mapped[Date] = mapped_column(SQLDate, nullable=False)

    payment_mode: Mapped[Optional[PaymentMode]] = mapped_column(
        SQLEnum(
            PaymentMode,
            name="payment_mode_enum",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=True,
    )

    reason: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Required for adjustments and refunds",
    )

    reference_number: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        comment="External transaction id (UPI ref, cheque number)",
    )

    receipt_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    fee: Mapped["MonthlyFee"] = relationship("MonthlyFee", back_populates="transactions")

    __table_args__ = (
        Index("ix_fee_transactions_student_date", "student_id", "transaction_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<FeeTransaction(id={self.id}, fee_id={self.fee_id}, kind={self.kind}, "
            f"amount={self.amount})>"
        )
