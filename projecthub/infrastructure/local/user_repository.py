"""
SQLite implementation of User repository.
"""

from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy import select

from projecthub.infrastructure.local.database import UserORM, get_session_factory, open_session
from projecthub.interfaces.user_repository import IUserRepository
from projecthub.models.enums import UserRole
from projecthub.models.user import User, UserCreate, UserSummary


def user_summary(orm: UserORM | None) -> UserSummary | None:
    """Joined user shape, or None when the referenced user does not exist."""
    if orm is None:
        return None
    return UserSummary(id=orm.id, display_name=orm.display_name, avatar_url=orm.avatar_url)


class SqliteUserRepository(IUserRepository):
    """SQLite implementation of user repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: UserORM) -> User:
        return User(
            id=orm.id,
            email=orm.email,
            display_name=orm.display_name,
            avatar_url=orm.avatar_url,
            role=UserRole(orm.role),
            created_at=orm.created_at,
        )

    async def create(self, user: UserCreate) -> User:
        async with open_session(self._session_factory) as session:
            orm = UserORM(
                id=user.id,
                email=user.email,
                display_name=user.display_name,
                avatar_url=user.avatar_url,
                role=user.role.value,
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def get(self, user_id: str) -> Optional[User]:
        async with open_session(self._session_factory) as session:
            result = await session.execute(select(UserORM).where(UserORM.id == user_id))
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def get_many(self, user_ids: Iterable[str]) -> dict[str, User]:
        ids = {user_id for user_id in user_ids if user_id}
        if not ids:
            return {}
        async with open_session(self._session_factory) as session:
            result = await session.execute(select(UserORM).where(UserORM.id.in_(ids)))
            return {orm.id: self._orm_to_model(orm) for orm in result.scalars().all()}
