"""
Mock authentication provider for local development.
"""

from projecthub.interfaces.auth_provider import IAuthProvider
from projecthub.interfaces.user_repository import IUserRepository
from projecthub.models.user import Actor


class MockAuthProvider(IAuthProvider):
    """Treats the bearer token as the user id."""

    def __init__(self, user_repo: IUserRepository):
        self._user_repo = user_repo

    async def verify_token(self, token: str) -> Actor:
        """
        Verify token - in mock mode, token is treated as user_id.

        Known users keep their stored role and name; any other token acts
        as a student with that id.
        """
        user = await self._user_repo.get(token)
        if user:
            return Actor(id=user.id, role=user.role, display_name=user.display_name)
        return Actor(id=token, display_name=token)
