"""
Signed single-use spin tokens for paid checkout sessions

Format: session_id:tier:timestamp_ms:signature, where signature is the
hex HMAC-SHA256 of "session_id:tier:timestamp_ms".
"""

import hashlib
import hmac
import time
from typing import NamedTuple, Optional

from prizewheel.core.config import settings
from prizewheel.core.errors import InvalidSpinTokenError


class SpinTokenClaims(NamedTuple):
    session_id: str
    tier: str
    issued_at_ms: int


def _signature(payload: str, secret: str) -> str:
    return hmac.new(secret.encode(), payload.encode(), hashlib.sha256).hexdigest()


def sign_token(session_id: str, tier: str, issued_at_ms: Optional[int] = None, secret: Optional[str] = None) -> str:
    issued_at_ms = int(time.time() * 1000) if issued_at_ms is None else issued_at_ms
    payload = f"{session_id}:{tier}:{issued_at_ms}"
    return f"{payload}:{_signature(payload, secret or settings.spin_token_secret)}"


def verify_token(
    token: str,
    tier: str,
    now_ms: Optional[int] = None,
    secret: Optional[str] = None,
    ttl_seconds: Optional[int] = None
) -> SpinTokenClaims:
    """
    Check a token's signature, tier and age.

    Raises:
        InvalidSpinTokenError: if the token is malformed, forged, for another tier or expired
    """
    if not isinstance(token, str):
        raise InvalidSpinTokenError("Invalid token format")
    parts = token.split(":")
    if len(parts) != 4:
        raise InvalidSpinTokenError("Invalid token format")

    session_id, token_tier, issued_at, signature = parts
    payload = f"{session_id}:{token_tier}:{issued_at}"
    expected = _signature(payload, secret or settings.spin_token_secret)
    if not hmac.compare_digest(signature, expected):
        raise InvalidSpinTokenError("Invalid token signature")

    if token_tier != tier:
        raise InvalidSpinTokenError("Token tier mismatch")

    try:
        issued_at_ms = int(issued_at)
    except ValueError:
        raise InvalidSpinTokenError("Invalid token format")

    now_ms = int(time.time() * 1000) if now_ms is None else now_ms
    ttl = settings.spin_token_ttl_seconds if ttl_seconds is None else ttl_seconds
    if now_ms - issued_at_ms > ttl * 1000:
        raise InvalidSpinTokenError("Token expired")

    return SpinTokenClaims(session_id, token_tier, issued_at_ms)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()
