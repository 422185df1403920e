from hostel_ledger.repositories.base.base_repository import BaseRepository

__all__ = ["BaseRepository"]
