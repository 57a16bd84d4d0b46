import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status

from passcode_service.application.passcode_service import PasscodeService
from passcode_service.application.rate_limiter import RateGate
from passcode_service.presentation.client_ip import get_client_ip
from passcode_service.presentation.dependencies import (
    get_app_settings,
    get_passcode_service,
    get_rate_gate,
)
from passcode_service.schemas.requests import PasscodeVerifyIn
from passcode_service.schemas.responses import (
    PasscodeStatusOut,
    PasscodeVerifyOut,
    QrCodeOut,
)
from passcode_service.settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/passcodes", tags=["Passcodes"])


@router.get("/qrcode", response_model=QrCodeOut)
async def get_qrcode(
    request: Request,
    gate: Annotated[RateGate, Depends(get_rate_gate)],
    settings: Annotated[Settings, Depends(get_app_settings)],
):
    await gate.enforce(ip=get_client_ip(request))
    return QrCodeOut(
        qrcode_url=settings.wechat_qrcode_url,
        tips=f'Scan to follow, then send "{settings.passcode_trigger_keyword}" to get a passcode',
    )


@router.post("/verify", response_model=PasscodeVerifyOut)
async def post_verify_passcode(
    request: Request,
    body: PasscodeVerifyIn,
    gate: Annotated[RateGate, Depends(get_rate_gate)],
    passcodes: Annotated[PasscodeService, Depends(get_passcode_service)],
):
    client_ip = get_client_ip(request)
    await gate.enforce(ip=client_ip, owner_id=body.owner_id)

    result = await passcodes.verify(body.passcode, body.owner_id)
    if not result.valid:
        logger.warning(
            "passcode verification failed",
            extra={"ip": client_ip, "reason": result.outcome.value},
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"reason": result.outcome.value, "message": result.message},
        )

    return PasscodeVerifyOut(
        valid=True, message=result.message, expires_at=result.expires_at
    )


@router.get("/status/{passcode}", response_model=PasscodeStatusOut)
async def get_passcode_status(
    passcode: str,
    request: Request,
    gate: Annotated[RateGate, Depends(get_rate_gate)],
    passcodes: Annotated[PasscodeService, Depends(get_passcode_service)],
):
    await gate.enforce(ip=get_client_ip(request))

    record = await passcodes.get_record(passcode)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="passcode not found"
        )

    # no owner id or trigger here; status is readable by anyone holding the code
    return PasscodeStatusOut(
        expired=record.is_expired(passcodes.now()),
        used=record.used,
        created_at=record.created_at,
        expires_at=record.expires_at,
    )
