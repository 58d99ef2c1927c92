"""
User models.

Profiles are owned by the auth/profile service; this backend only reads them
to resolve display names and to build the acting user's context.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from projecthub.models.enums import UserRole


class UserSummary(BaseModel):
    """Joined user shape embedded in milestones, tasks, activities and comments."""

    id: str
    display_name: str
    avatar_url: Optional[str] = None


class UserCreate(BaseModel):
    """Create a user profile."""

    id: str = Field(..., min_length=1, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    display_name: str = Field(..., min_length=1, max_length=255)
    avatar_url: Optional[str] = Field(None, max_length=500)
    role: UserRole = UserRole.STUDENT


class User(UserCreate):
    """User profile stored in the database."""

    created_at: datetime

    class Config:
        from_attributes = True

    def to_summary(self) -> UserSummary:
        return UserSummary(id=self.id, display_name=self.display_name, avatar_url=self.avatar_url)


class Actor(BaseModel):
    """
    The user performing an operation.

    Passed explicitly to every service call instead of being read from
    session state.
    """

    id: str = Field(..., min_length=1)
    role: UserRole = UserRole.STUDENT
    display_name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
