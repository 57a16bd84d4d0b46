from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class PasscodeVerifyOut(BaseModel):
    valid: bool
    message: str
    expires_at: Optional[datetime] = Field(
        None, description="When the passcode would have expired"
    )


class QrCodeOut(BaseModel):
    qrcode_url: str
    tips: str


class PasscodeStatusOut(BaseModel):
    exists: Literal[True] = True
    expired: bool
    used: bool
    created_at: datetime
    expires_at: datetime


class HealthOut(BaseModel):
    status: Literal["ok"] = "ok"
    version: str
