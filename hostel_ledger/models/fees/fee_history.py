"""
Fee history model: append-only audit trail of monthly fee changes.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, Enum as SQLEnum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from hostel_ledger.models.base.base_model import BaseModel
from hostel_ledger.models.base.enums import FeeHistoryAction


class FeeHistory(BaseModel):
    """Before/after snapshot of one change to a monthly fee."""

    __tablename__ = "fee_history"

    fee_id: Mapped[str] = mapped_column(
        ForeignKey("monthly_fees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    student_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    action: Mapped[FeeHistoryAction] = mapped_column(
        SQLEnum(
            FeeHistoryAction,
            name="fee_history_action_enum",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )

    old_values: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    new_values: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    actor_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
