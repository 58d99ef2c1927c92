"""
Local JWT authentication provider.
"""

from __future__ import annotations

from jose import JWTError, jwt

from projecthub.core.config import Settings
from projecthub.core.exceptions import UnauthorizedError
from projecthub.interfaces.auth_provider import IAuthProvider
from projecthub.interfaces.user_repository import IUserRepository
from projecthub.models.user import Actor


class LocalAuthProvider(IAuthProvider):
    """Local auth provider with HMAC JWT validation."""

    def __init__(self, settings: Settings, user_repo: IUserRepository):
        if not settings.LOCAL_JWT_SECRET:
            raise ValueError("LOCAL_JWT_SECRET must be set for local auth")
        self._settings = settings
        self._user_repo = user_repo

    def _decode_token(self, token: str) -> dict[str, object]:
        options = {"verify_iss": bool(self._settings.LOCAL_JWT_ISSUER)}
        return jwt.decode(
            token,
            self._settings.LOCAL_JWT_SECRET,
            algorithms=["HS256"],
            issuer=self._settings.LOCAL_JWT_ISSUER or None,
            options=options,
        )

    async def verify_token(self, token: str) -> Actor:
        try:
            claims = self._decode_token(token)
        except JWTError as exc:
            raise UnauthorizedError("Invalid token") from exc

        subject = claims.get("sub")
        if not subject:
            raise UnauthorizedError("Token has no subject")
        user = await self._user_repo.get(str(subject))
        if not user:
            raise UnauthorizedError("User not found")
        return Actor(id=user.id, role=user.role, display_name=user.display_name)
