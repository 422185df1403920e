"""
API v1 Router - Main Entry Point
Aggregates all v1 API endpoints for the fee ledger
"""

from fastapi import APIRouter

from hostel_ledger.api.v1 import meta, monthly_fees
from hostel_ledger.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(
    responses={
        400: {"description": "Bad Request"},
        403: {"description": "Forbidden"},
        404: {"description": "Not Found"},
        409: {"description": "Conflict"},
        422: {"description": "Validation Error"},
        500: {"description": "Internal Server Error"},
    }
)

router.include_router(monthly_fees.router, prefix="/monthly-fees", tags=["Monthly Fees"])
router.include_router(meta.router, prefix="/meta", tags=["Meta"])
