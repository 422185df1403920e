"""
FastAPI dependencies shared by the v1 routers.

Example usage in a router:
    from fastapi import Depends, APIRouter
    from hostel_ledger.api import deps

    @router.get("/fees")
    def list_fees(service = Depends(deps.get_ledger_service)):
        ...
"""

from typing import Any, Generator, Optional, Type

from fastapi import Depends, Header, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from hostel_ledger.config.database import get_db_session
from hostel_ledger.services.base.service_result import ErrorCode, ServiceResult
from hostel_ledger.services.fees.fee_ledger_service import MonthlyFeeLedgerService

__all__ = [
    "get_db",
    "get_ledger_service",
    "get_actor_id",
    "unwrap_result",
]

# Fallback HTTP status for failures that did not come from a domain exception
_STATUS_BY_CODE = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.INVALID_AMOUNT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_PERIOD: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.TIMEOUT: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def get_db() -> Generator[Session, None, None]:
    yield from get_db_session()


def get_ledger_service(db: Session = Depends(get_db)) -> MonthlyFeeLedgerService:
    return MonthlyFeeLedgerService(db)


def get_actor_id(x_actor_id: Optional[str] = Header(default=None)) -> Optional[str]:
    """Caller identity for the fee history trail, taken from X-Actor-Id."""
    return x_actor_id


def unwrap_result(result: ServiceResult, schema: Optional[Type[BaseModel]] = None) -> Any:
    """
    Return the result data or raise the matching HTTPException.

    With `schema`, service dataclasses are converted by attribute so
    computed properties reach the response.
    """
    if result.is_success:
        if schema is None:
            return result.data
        if isinstance(result.data, list):
            return [schema.model_validate(item) for item in result.data]
        return schema.model_validate(result.data)

    error = result.error
    details = dict(error.details or {})
    status_code = details.pop("status_code", None) or _STATUS_BY_CODE.get(
        error.code, status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    raise HTTPException(
        status_code=status_code,
        detail={"code": error.code.value, "message": error.message, "details": details},
    )
