"""
User repository interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Optional

from projecthub.models.user import User, UserCreate


class IUserRepository(ABC):
    """Abstract interface for user profile lookups."""

    @abstractmethod
    async def create(self, user: UserCreate) -> User:
        """Create a user profile."""
        pass

    @abstractmethod
    async def get(self, user_id: str) -> Optional[User]:
        """Get a user by ID."""
        pass

    @abstractmethod
    async def get_many(self, user_ids: Iterable[str]) -> dict[str, User]:
        """Get users by ID. Missing IDs are absent from the result."""
        pass
