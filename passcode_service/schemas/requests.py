from typing import Optional

from pydantic import BaseModel, Field


class PasscodeVerifyIn(BaseModel):
    # Format rules are enforced by the passcode service, not here.
    passcode: str = Field(..., description="The passcode to verify", max_length=64)
    owner_id: Optional[str] = Field(
        None, description="Owner the caller believes the passcode belongs to"
    )
