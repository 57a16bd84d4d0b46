from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum


@dataclass
class PasscodeRecord:
    owner_id: str
    trigger: str
    created_at: datetime
    expires_at: datetime
    used: bool = False
    used_at: datetime | None = None

    def __post_init__(self):
        if not self.owner_id or not self.owner_id.strip():
            raise ValueError("owner_id is required")
        if self.expires_at <= self.created_at:
            raise ValueError("expires_at must be after created_at")
        if self.used != (self.used_at is not None):
            raise ValueError("used_at must be set iff used is true")

    @classmethod
    def create(
        cls, owner_id: str, trigger: str, ttl_seconds: int, now: datetime
    ) -> "PasscodeRecord":
        return cls(
            owner_id=owner_id,
            trigger=trigger,
            created_at=now,
            expires_at=now + timedelta(seconds=ttl_seconds),
        )

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def mark_used(self, now: datetime) -> None:
        if self.used:
            return
        self.used = True
        self.used_at = now

    def to_json(self) -> str:
        return json.dumps(
            {
                "owner_id": self.owner_id,
                "trigger": self.trigger,
                "created_at": self.created_at.isoformat(),
                "expires_at": self.expires_at.isoformat(),
                "used": self.used,
                "used_at": self.used_at.isoformat() if self.used_at else None,
            }
        )

    @classmethod
    def from_json(cls, raw: str) -> "PasscodeRecord":
        """Raises ValueError (or KeyError/TypeError) on a malformed payload."""
        data = json.loads(raw)
        used_at = data.get("used_at")
        return cls(
            owner_id=data["owner_id"],
            trigger=data.get("trigger") or "",
            created_at=datetime.fromisoformat(data["created_at"]),
            expires_at=datetime.fromisoformat(data["expires_at"]),
            used=bool(data.get("used", False)),
            used_at=datetime.fromisoformat(used_at) if used_at else None,
        )


class VerifyOutcome(str, Enum):
    VERIFIED = "verified"
    INVALID_FORMAT = "invalid_format"
    NOT_FOUND = "not_found"
    ALREADY_USED = "already_used"
    EXPIRED = "expired"


VERIFY_MESSAGES = {
    VerifyOutcome.VERIFIED: "passcode verified",
    VerifyOutcome.INVALID_FORMAT: "format invalid",
    VerifyOutcome.NOT_FOUND: "not found or expired",
    VerifyOutcome.ALREADY_USED: "already used",
    VerifyOutcome.EXPIRED: "expired",
}


@dataclass(frozen=True)
class VerifyResult:
    valid: bool
    outcome: VerifyOutcome
    message: str
    expires_at: datetime | None = None

    @classmethod
    def success(cls, expires_at: datetime) -> "VerifyResult":
        return cls(
            valid=True,
            outcome=VerifyOutcome.VERIFIED,
            message=VERIFY_MESSAGES[VerifyOutcome.VERIFIED],
            expires_at=expires_at,
        )

    @classmethod
    def failure(cls, outcome: VerifyOutcome) -> "VerifyResult":
        return cls(valid=False, outcome=outcome, message=VERIFY_MESSAGES[outcome])
