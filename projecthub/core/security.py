"""
Token helpers for local authentication.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import jwt

from projecthub.core.config import Settings


def create_access_token(user_id: str, settings: Settings, expires_minutes: int | None = None) -> str:
    """Create a signed JWT for a local user."""
    now = datetime.now(timezone.utc)
    expires = now + timedelta(minutes=expires_minutes or settings.LOCAL_JWT_EXPIRE_MINUTES)
    payload = {
        "sub": user_id,
        "iat": int(now.timestamp()),
        "exp": int(expires.timestamp()),
    }
    if settings.LOCAL_JWT_ISSUER:
        payload["iss"] = settings.LOCAL_JWT_ISSUER
    return jwt.encode(payload, settings.LOCAL_JWT_SECRET, algorithm="HS256")
