"""
Base repository with standardized CRUD operations and error handling.

Repositories never commit: the owning service decides the transaction
boundary, repositories only add, flush and query.
"""

from typing import Generic, List, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from hostel_ledger.core.exceptions import (
    EntityAlreadyExistsError,
    RepositoryError,
)
from hostel_ledger.core.logging import get_logger
from hostel_ledger.models.base import BaseModel

logger = get_logger(__name__)

# Type variable for model classes
ModelType = TypeVar("ModelType", bound=BaseModel)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with standardized operations.

    Provides create/read/delete helpers for all ledger repositories.
    """

    def __init__(self, model: Type[ModelType], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    # ==================== Create Operations ====================

    def create(self, entity: ModelType) -> ModelType:
        """
        Add entity to the session and flush so defaults and id are populated.

        Raises:
            EntityAlreadyExistsError: If a unique constraint is violated
        """
        try:
            self.db.add(entity)
            self.db.flush()
            logger.debug(f"Created {self.model.__name__} with id: {entity.id}")
            return entity
        except IntegrityError as e:
            raise EntityAlreadyExistsError(
                f"{self.model.__name__} already exists"
            ) from e
        except SQLAlchemyError as e:
            raise RepositoryError(f"Create failed: {str(e)}") from e

    def create_many(self, entities: List[ModelType]) -> List[ModelType]:
        """Add a batch of entities and flush once."""
        if not entities:
            return []
        try:
            self.db.add_all(entities)
            self.db.flush()
            logger.debug(f"Bulk created {len(entities)} {self.model.__name__} entities")
            return entities
        except IntegrityError as e:
            raise EntityAlreadyExistsError(
                f"{self.model.__name__} already exists"
            ) from e
        except SQLAlchemyError as e:
            raise RepositoryError(f"Bulk create failed: {str(e)}") from e

    # ==================== Read Operations ====================

    def find_by_id(self, id: str) -> Optional[ModelType]:
        """Find entity by ID, or None."""
        try:
            return self.db.get(self.model, id)
        except SQLAlchemyError as e:
            raise RepositoryError(f"Find by ID failed: {str(e)}") from e

    # ==================== Delete Operations ====================

    def delete(self, entity: ModelType) -> None:
        """Delete entity and flush."""
        try:
            self.db.delete(entity)
            self.db.flush()
            logger.debug(f"Deleted {self.model.__name__} with id: {entity.id}")
        except SQLAlchemyError as e:
            raise RepositoryError(f"Delete failed: {str(e)}") from e
