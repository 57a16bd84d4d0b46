from __future__ import annotations

import hashlib

from passcode_service.domain.services import secure_compare


def compute_signature(token: str, timestamp: str, nonce: str) -> str:
    """SHA1 hex of the lexically sorted token/timestamp/nonce concatenation."""
    joined = "".join(sorted([token, timestamp, nonce]))
    return hashlib.sha1(joined.encode("utf-8")).hexdigest()


def check_signature(token: str, signature: str, timestamp: str, nonce: str) -> bool:
    if not signature or not timestamp or not nonce:
        return False
    return secure_compare(compute_signature(token, timestamp, nonce), signature)
