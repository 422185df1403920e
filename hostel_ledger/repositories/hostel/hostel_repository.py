"""
Hostel configuration lookups.
"""

from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from hostel_ledger.config.settings import settings
from hostel_ledger.models.hostel.hostel import Hostel
from hostel_ledger.repositories.base.base_repository import BaseRepository


class HostelRepository(BaseRepository[Hostel]):
    """Per-hostel billing configuration."""

    def __init__(self, db: Session):
        super().__init__(Hostel, db)

    def get_due_date_default(self, hostel_id: str) -> int:
        """Hostel due day of month, or the configured default (15)."""
        hostel = self.find_by_id(hostel_id)
        if hostel is None or not hostel.due_date_day:
            return settings.DEFAULT_DUE_DATE_DAY
        return hostel.due_date_day

    def get_active_hostel_ids(self) -> List[str]:
        stmt = select(Hostel.id).where(Hostel.is_active.is_(True)).order_by(Hostel.name)
        return list(self.db.execute(stmt).scalars().all())
