from hostel_ledger.repositories.hostel.student_repository import StudentRepository
from hostel_ledger.repositories.hostel.hostel_repository import HostelRepository

__all__ = ["StudentRepository", "HostelRepository"]
