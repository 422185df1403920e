"""
Base model configuration for SQLAlchemy ORM.

Provides the declarative base and abstract base classes shared by
all ledger tables.
"""

import re
from datetime import datetime
from uuid import uuid4

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, declarative_base, declared_attr, mapped_column
from sqlalchemy.sql import func

# Create declarative base
Base = declarative_base()


class BaseModel(Base):
    """
    Abstract base model with common fields and methods.

    Provides foundation for all database models with
    standard functionality and utilities.
    """

    __abstract__ = True

    # Primary key column - present in all models
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
        nullable=False,
        comment="Primary key (UUID)"
    )

    @declared_attr
    def __tablename__(cls) -> str:
        """Generate table name from class name."""
        name = re.sub('(.)([A-Z][a-z]+)', r'\1_\2', cls.__name__)
        return re.sub('([a-z0-9])([A-Z])', r'\1_\2', name).lower() + 's'

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"


class TimestampModel(BaseModel):
    """
    Base model with automatic timestamp tracking.

    Includes created_at and updated_at fields with
    automatic management.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="Record creation timestamp"
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
        comment="Record last update timestamp"
    )
