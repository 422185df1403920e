"""
Base service class providing common functionality for ledger services.
"""

from abc import ABC
from contextlib import contextmanager
from typing import Any, Dict, Generic, Optional, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from hostel_ledger.core.exceptions import BaseAppException
from hostel_ledger.core.logging import get_logger
from hostel_ledger.repositories.base.base_repository import BaseRepository
from hostel_ledger.services.base.service_result import (
    ErrorCode,
    ErrorSeverity,
    ServiceError,
    ServiceResult,
)

TModel = TypeVar("TModel")
TRepo = TypeVar("TRepo", bound=BaseRepository)


class BaseService(ABC, Generic[TModel, TRepo]):
    """
    Base service with common behaviors:
    - Shared logger and db session
    - Consistent error handling via ServiceResult
    - Transaction management utilities
    """

    def __init__(self, repository: TRepo, db_session: Session):
        """
        Initialize base service.

        Args:
            repository: Repository instance for data access
            db_session: SQLAlchemy database session
        """
        self.repository: TRepo = repository
        self.db: Session = db_session
        self._logger = get_logger(self.__class__.__name__)

    # -------------------------------------------------------------------------
    # Exception & Error Handling
    # -------------------------------------------------------------------------

    def _handle_exception(
        self,
        exception: Exception,
        operation: str,
        entity_ref: Optional[Any] = None,
        severity: ErrorSeverity = ErrorSeverity.CRITICAL,
        additional_context: Optional[Dict[str, Any]] = None,
    ) -> ServiceResult:
        """
        Convert exception to a ServiceResult failure with logging.

        Domain exceptions keep their own code and message and are logged
        as warnings; anything else is an internal error with a traceback.
        """
        context = {
            "operation": operation,
            "entity_ref": str(entity_ref) if entity_ref is not None else None,
            "exception_type": type(exception).__name__,
        }
        if additional_context:
            context.update(additional_context)

        if isinstance(exception, BaseAppException):
            self._logger.warning(f"{operation} rejected: {exception.message}", extra=context)
            return ServiceResult.failure(ServiceError.from_app_exception(exception))

        self._logger.error(
            f"Error during {operation}: {exception}",
            exc_info=True,
            extra=context,
        )

        return ServiceResult.failure(
            ServiceError(
                code=self._map_exception_to_error_code(exception),
                message=f"Failed to {operation}",
                details={
                    "error": str(exception),
                    "entity_ref": str(entity_ref) if entity_ref is not None else None,
                },
                severity=severity,
            )
        )

    def _map_exception_to_error_code(self, exception: Exception) -> ErrorCode:
        """Map non-domain exception types to error codes."""
        exception_mapping = {
            IntegrityError: ErrorCode.CONFLICT,
            ValueError: ErrorCode.VALIDATION_ERROR,
            KeyError: ErrorCode.NOT_FOUND,
            SQLAlchemyError: ErrorCode.INTERNAL_ERROR,
        }

        for exc_type, error_code in exception_mapping.items():
            if isinstance(exception, exc_type):
                return error_code

        return ErrorCode.INTERNAL_ERROR

    # -------------------------------------------------------------------------
    # Transaction Management
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self, auto_commit: bool = True):
        """
        Context manager for database transactions with automatic rollback.

        Example:
            with self.transaction():
                self.repository.create(entity)
        """
        try:
            yield self.db
            if auto_commit:
                self._commit()
        except Exception as e:
            self._rollback()
            self._logger.debug(f"Transaction rolled back: {e}")
            raise

    def _commit(self) -> None:
        """Commit the current transaction."""
        self.db.commit()
        self._logger.debug("Transaction committed successfully")

    def _rollback(self) -> None:
        """Rollback the current transaction, suppressing rollback errors."""
        try:
            self.db.rollback()
        except SQLAlchemyError as e:
            # Rollback errors must not mask the original error
            self._logger.warning(f"Rollback failed: {e}")

    # -------------------------------------------------------------------------
    # Utility Methods
    # -------------------------------------------------------------------------

    def _log_operation(
        self,
        operation: str,
        entity_ref: Optional[Any] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log service operation with standardized format."""
        context = {"entity_ref": str(entity_ref) if entity_ref else None}
        if extra:
            context.update(extra)

        self._logger.info(f"Operation: {operation}", extra=context)
