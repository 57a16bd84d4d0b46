# passcode_service/domain/services.py
from __future__ import annotations

import hmac
import re
import secrets
import string
from datetime import datetime

PASSCODE_ALPHABET = string.ascii_uppercase + string.digits
MIN_PASSCODE_LENGTH = 4
MAX_PASSCODE_LENGTH = 10

_PASSCODE_RE = re.compile(r"[A-Z0-9]+")


def generate_passcode(length: int) -> str:
    """Random code of `length` chars drawn uniformly from A-Z0-9."""
    if length < 1:
        raise ValueError("length must be >= 1")
    return "".join(secrets.choice(PASSCODE_ALPHABET) for _ in range(length))


def generate_passcode_with_suffix(
    length: int, include_timestamp_suffix: bool, now: datetime | None = None
) -> str:
    """
    Collision fallback: the last two chars are replaced by the minute digits
    of the current time. Codes shorter than 3 chars stay fully random.
    """
    code = generate_passcode(length)
    if not include_timestamp_suffix or length < 3:
        return code
    stamp = (now or datetime.now()).strftime("%M%S")
    return code[: length - 2] + stamp[:2]


def is_valid_format(code: str | None) -> bool:
    if code is None or not code.strip():
        return False
    if not MIN_PASSCODE_LENGTH <= len(code) <= MAX_PASSCODE_LENGTH:
        return False
    return _PASSCODE_RE.fullmatch(code) is not None


def secure_compare(a: str, b: str) -> bool:
    """
    Constant-time comparison for secrets.
    Accepts strings; falls back to bytes if needed.
    """
    try:
        # hmac.compare_digest supports str if types match
        return hmac.compare_digest(a, b)
    except TypeError:
        return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))
