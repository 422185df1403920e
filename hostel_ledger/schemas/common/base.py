"""
Base schema classes with common fields and configurations.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "BaseSchema",
    "BaseDBSchema",
    "PERIOD_PATTERN",
]

PERIOD_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


class BaseSchema(BaseModel):
    """
    Base schema with common Pydantic configuration.

    Reads ORM objects and dataclasses by attribute.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        use_enum_values=False,
        str_strip_whitespace=True,
    )


class BaseDBSchema(BaseSchema):
    """Base schema for database entities with ID and timestamps."""

    id: str = Field(..., description="Unique identifier")
    created_at: datetime | None = Field(default=None, description="Creation timestamp")
    updated_at: datetime | None = Field(default=None, description="Last update timestamp")
