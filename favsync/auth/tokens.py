"""Helpers for judging whether saved session artifacts are still usable."""
from __future__ import annotations

import base64
import binascii
import json
import time
from typing import Any, Dict, Optional

from ..models import SessionArtifacts

ACCESS_TOKEN_COOKIE = "access_token_web"
REFRESH_TOKEN_COOKIE = "refresh_token_web"
SESSION_COOKIES = ("_vinted_fr_session", ACCESS_TOKEN_COOKIE)
EXPIRY_SKEW_SECONDS = 300


def decode_jwt_claims(token: str) -> Optional[Dict[str, Any]]:
    """Decode a JWT payload without verifying it. Returns None if malformed."""

    parts = token.split(".")
    if len(parts) != 3:
        return None
    payload = parts[1] + "=" * (-len(parts[1]) % 4)
    try:
        claims = json.loads(base64.urlsafe_b64decode(payload.encode("ascii")))
    except (binascii.Error, UnicodeError, ValueError):
        return None
    return claims if isinstance(claims, dict) else None


def access_token_expired(
    artifacts: SessionArtifacts,
    *,
    skew_seconds: int = EXPIRY_SKEW_SECONDS,
    now: Optional[float] = None,
) -> Optional[bool]:
    """True if the access token expires within ``skew_seconds``.

    Returns None when there is no decodable token with an ``exp`` claim.
    """
    token = artifacts.cookie(ACCESS_TOKEN_COOKIE)
    if not token:
        return None
    claims = decode_jwt_claims(token)
    if not claims or not isinstance(claims.get("exp"), (int, float)):
        return None
    current = time.time() if now is None else now
    return claims["exp"] - skew_seconds < current


def has_session_cookie(artifacts: SessionArtifacts) -> bool:
    return any(artifacts.cookie(name) for name in SESSION_COOKIES)


__all__ = [
    "ACCESS_TOKEN_COOKIE",
    "REFRESH_TOKEN_COOKIE",
    "SESSION_COOKIES",
    "access_token_expired",
    "decode_jwt_claims",
    "has_session_cookie",
]
