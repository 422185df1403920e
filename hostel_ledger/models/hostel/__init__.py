"""
Hostel and student models consumed by the ledger.
"""

from hostel_ledger.models.hostel.hostel import Hostel
from hostel_ledger.models.hostel.student import Student

__all__ = ["Hostel", "Student"]
