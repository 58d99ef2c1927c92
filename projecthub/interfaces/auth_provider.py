"""
Authentication provider interface.
"""

from abc import ABC, abstractmethod

from projecthub.models.user import Actor


class IAuthProvider(ABC):
    """Resolves a bearer token into the acting user."""

    @abstractmethod
    async def verify_token(self, token: str) -> Actor:
        """
        Verify a token and return the actor.

        Raises:
            UnauthorizedError: If the token is invalid
        """
        pass
