from hostel_ledger.schemas.common.base import BaseDBSchema, BaseSchema, PERIOD_PATTERN

__all__ = ["BaseDBSchema", "BaseSchema", "PERIOD_PATTERN"]
