from fastapi import APIRouter

from hostel_ledger.config.settings import settings
from hostel_ledger.schemas.fees import VersionResponse

router = APIRouter()


@router.get("/version", response_model=VersionResponse)
def get_version() -> VersionResponse:
    return VersionResponse(name=settings.APP_NAME, version=settings.APP_VERSION)
