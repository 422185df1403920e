"""
Custom Exceptions for the Hostel Fee Ledger

This module defines custom exception classes used throughout the ledger
for better error handling and debugging.
"""

from decimal import Decimal
from typing import Any, Dict, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for the application"""
    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    OPERATION_FAILED = "OPERATION_FAILED"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Database errors
    DATABASE_ERROR = "DATABASE_ERROR"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"

    # Lookup errors
    STUDENT_NOT_FOUND = "STUDENT_NOT_FOUND"
    FEE_NOT_FOUND = "FEE_NOT_FOUND"
    TRANSACTION_NOT_FOUND = "TRANSACTION_NOT_FOUND"

    # Ledger errors
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_PERIOD = "INVALID_PERIOD"
    STUDENT_NOT_ELIGIBLE = "STUDENT_NOT_ELIGIBLE"
    DUPLICATE_PERIOD_RECORD = "DUPLICATE_PERIOD_RECORD"
    INCONSISTENT_LEDGER = "INCONSISTENT_LEDGER"
    CASCADE_FAILURE = "CASCADE_FAILURE"
    PERIOD_LOCKED = "PERIOD_LOCKED"

    # Concurrency
    TIMEOUT_ERROR = "TIMEOUT_ERROR"


class BaseAppException(Exception):
    """
    Base exception class for all application exceptions.

    Provides consistent error handling across the application with
    structured error information.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format"""
        return {
            "error": {
                "message": self.message,
                "code": self.error_code.value,
                "details": self.details,
                "type": self.__class__.__name__
            }
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


class ValidationError(BaseAppException):
    """Exception raised when data validation fails"""

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        status_code: int = 422
    ):
        details = {"field": field} if field else {}
        super().__init__(message, error_code, details, status_code)


class ResourceNotFoundError(BaseAppException):
    """Exception raised when a requested resource is not found"""

    def __init__(
        self,
        resource_type: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None
    ):
        if not message:
            message = f"{resource_type} not found"
            if resource_id:
                message += f" (ID: {resource_id})"

        details = {
            "resource_type": resource_type,
            "resource_id": resource_id
        }
        super().__init__(message, ErrorCode.RESOURCE_NOT_FOUND, details, 404)


class StudentNotFoundError(ResourceNotFoundError):
    """Exception raised when a student is not found"""

    def __init__(self, student_id: Optional[str] = None):
        super().__init__("Student", student_id)
        self.error_code = ErrorCode.STUDENT_NOT_FOUND


class FeeNotFoundError(ResourceNotFoundError):
    """Exception raised when a monthly fee record is not found"""

    def __init__(self, fee_id: Optional[str] = None):
        super().__init__("Monthly fee", fee_id)
        self.error_code = ErrorCode.FEE_NOT_FOUND


class TransactionNotFoundError(ResourceNotFoundError):
    """Exception raised when a fee transaction is not found"""

    def __init__(self, transaction_id: Optional[str] = None):
        super().__init__("Fee transaction", transaction_id)
        self.error_code = ErrorCode.TRANSACTION_NOT_FOUND


# ========================================
# Repository Exceptions
# ========================================

class RepositoryError(BaseAppException):
    """Exception raised when a persistence operation fails"""

    def __init__(self, message: str = "Repository operation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.DATABASE_ERROR, details, 500)


class EntityAlreadyExistsError(RepositoryError):
    """Exception raised when an insert violates a uniqueness constraint"""

    def __init__(self, message: str = "Entity already exists"):
        super().__init__(message)
        self.error_code = ErrorCode.DUPLICATE_ENTRY
        self.status_code = 409


# ========================================
# Ledger Exceptions
# ========================================

class LedgerError(BaseAppException):
    """Base class for fee ledger rule violations"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.OPERATION_FAILED,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 400
    ):
        super().__init__(message, error_code, details, status_code)


class InvalidAmountError(LedgerError):
    """Exception raised when a payment or adjustment amount is not acceptable"""

    def __init__(self, message: str = "Invalid amount", amount: Optional[Decimal] = None):
        details = {"amount": str(amount) if amount is not None else None}
        super().__init__(message, ErrorCode.INVALID_AMOUNT, details, 400)


class InvalidPeriodError(LedgerError):
    """Exception raised when a billing period token cannot be parsed"""

    def __init__(self, period: Any):
        super().__init__(
            f"Invalid billing period '{period}', expected YYYY-MM",
            ErrorCode.INVALID_PERIOD,
            {"period": str(period)},
            400,
        )


class StudentNotEligibleError(LedgerError):
    """Exception raised when a student cannot be billed"""

    def __init__(self, student_id: str, reason: str):
        super().__init__(
            f"Student {student_id} is not eligible for billing: {reason}",
            ErrorCode.STUDENT_NOT_ELIGIBLE,
            {"student_id": student_id, "reason": reason},
            422,
        )


class DuplicatePeriodRecordError(LedgerError):
    """Exception raised when a second fee is created for the same student and period"""

    def __init__(self, student_id: Optional[str], period: str):
        super().__init__(
            f"A fee record already exists for student {student_id} in {period}",
            ErrorCode.DUPLICATE_PERIOD_RECORD,
            {"student_id": student_id, "period": period},
            409,
        )


class InconsistentLedgerError(LedgerError):
    """Exception raised when a stored paid amount disagrees with its transactions"""

    def __init__(self, fee_id: str, stored: Decimal, computed: Decimal):
        super().__init__(
            f"Fee {fee_id} paid amount {stored} does not match transaction sum {computed}",
            ErrorCode.INCONSISTENT_LEDGER,
            {"fee_id": fee_id, "stored": str(stored), "computed": str(computed)},
            409,
        )


class CascadeFailureError(LedgerError):
    """Exception raised when propagation into later periods fails"""

    def __init__(self, student_id: str, from_period: str, reason: str):
        super().__init__(
            f"Cascade for student {student_id} after {from_period} failed: {reason}",
            ErrorCode.CASCADE_FAILURE,
            {"student_id": student_id, "from_period": from_period, "reason": reason},
            500,
        )


class PeriodLockedError(LedgerError):
    """Exception raised when editing a fee outside the current billing period"""

    def __init__(self, period: str, current_period: str):
        super().__init__(
            f"Only the current month ({current_period}) can be edited, not {period}",
            ErrorCode.PERIOD_LOCKED,
            {"period": period, "current_period": current_period},
            403,
        )


class LedgerLockTimeoutError(LedgerError):
    """Exception raised when the per-student ledger lock cannot be acquired"""

    def __init__(self, student_id: str, timeout: float):
        super().__init__(
            f"Timed out after {timeout}s waiting for ledger lock of student {student_id}",
            ErrorCode.TIMEOUT_ERROR,
            {"student_id": student_id, "timeout": timeout},
            503,
        )
