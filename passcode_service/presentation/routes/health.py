from fastapi import APIRouter

from passcode_service.schemas.responses import HealthOut
from passcode_service.settings import get_settings


router = APIRouter()


@router.get("/healthz", response_model=HealthOut)
async def healthz() -> HealthOut:
    return HealthOut(version=get_settings().app_version)
