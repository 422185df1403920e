"""
Service result patterns for standardized response handling.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

from hostel_ledger.core.exceptions import BaseAppException


class ErrorCode(str, Enum):
    """Error codes surfaced by ledger service operations."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    CONFLICT = "CONFLICT"
    TIMEOUT = "TIMEOUT"

    # Ledger errors
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_PERIOD = "INVALID_PERIOD"
    STUDENT_NOT_ELIGIBLE = "STUDENT_NOT_ELIGIBLE"
    DUPLICATE_PERIOD_RECORD = "DUPLICATE_PERIOD_RECORD"
    INCONSISTENT_LEDGER = "INCONSISTENT_LEDGER"
    CASCADE_FAILURE = "CASCADE_FAILURE"
    PERIOD_LOCKED = "PERIOD_LOCKED"


# Application exception codes folded onto service codes
_APP_CODE_MAP = {
    "RESOURCE_NOT_FOUND": ErrorCode.NOT_FOUND,
    "STUDENT_NOT_FOUND": ErrorCode.NOT_FOUND,
    "FEE_NOT_FOUND": ErrorCode.NOT_FOUND,
    "TRANSACTION_NOT_FOUND": ErrorCode.NOT_FOUND,
    "DUPLICATE_ENTRY": ErrorCode.ALREADY_EXISTS,
    "TIMEOUT_ERROR": ErrorCode.TIMEOUT,
    "DATABASE_ERROR": ErrorCode.INTERNAL_ERROR,
}


class ErrorSeverity(str, Enum):
    """Error severity levels."""

    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class ServiceError:
    """Represents a service operation error with context."""

    code: ErrorCode
    message: str
    severity: ErrorSeverity = ErrorSeverity.ERROR
    details: Optional[Dict[str, Any]] = None
    field: Optional[str] = None
    timestamp: Optional[datetime] = None

    def __post_init__(self):
        """Set timestamp if not provided."""
        if self.timestamp is None:
            self.timestamp = datetime.now(timezone.utc)

    @classmethod
    def from_app_exception(
        cls,
        exception: BaseAppException,
        severity: ErrorSeverity = ErrorSeverity.WARNING,
    ) -> "ServiceError":
        """Translate a domain exception, keeping its message and details."""
        raw = exception.error_code.value
        code = _APP_CODE_MAP.get(raw)
        if code is None:
            code = ErrorCode(raw) if raw in ErrorCode.__members__ else ErrorCode.INTERNAL_ERROR
        return cls(
            code=code,
            message=exception.message,
            severity=severity,
            field=exception.details.get("field"),
            details={**exception.details, "status_code": exception.status_code},
        )


TData = TypeVar("TData")


@dataclass
class ServiceResult(Generic[TData]):
    """
    Standardized service operation result with success/failure pattern.

    Attributes:
        is_success: Operation success indicator
        data: Result data (if successful)
        error: Error information (if failed)
        message: Human-readable status message
        metadata: Additional context information
    """

    is_success: bool
    data: Optional[TData] = None
    error: Optional[ServiceError] = None
    message: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @classmethod
    def success(
        cls,
        data: Optional[TData] = None,
        message: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "ServiceResult[TData]":
        """Create a successful result."""
        return cls(
            is_success=True,
            data=data,
            message=message,
            metadata=metadata or {},
        )

    @classmethod
    def failure(
        cls,
        error: ServiceError,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "ServiceResult[TData]":
        """Create a failed result."""
        return cls(
            is_success=False,
            error=error,
            message=error.message,
            metadata=metadata or {},
        )

    def unwrap(self) -> TData:
        """
        Unwrap the result data or raise exception if failed.

        Raises:
            ValueError: If the result is not successful
        """
        if not self.is_success:
            raise ValueError(f"Cannot unwrap failed result: {self.error.message if self.error else 'Unknown error'}")
        return self.data

    def __bool__(self) -> bool:
        """Allow boolean evaluation of the result."""
        return self.is_success

    def __repr__(self) -> str:
        status = "Success" if self.is_success else "Failure"
        if self.message:
            return f"ServiceResult({status}: {self.message})"
        return f"ServiceResult({status})"


__all__ = [
    "ErrorCode",
    "ErrorSeverity",
    "ServiceError",
    "ServiceResult",
]
