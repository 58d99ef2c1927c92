"""
SQLite implementation of project member repository.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import and_, select

from projecthub.infrastructure.local.database import (
    ProjectMemberORM,
    UserORM,
    get_session_factory,
    open_session,
)
from projecthub.infrastructure.local.user_repository import user_summary
from projecthub.interfaces.project_member_repository import IProjectMemberRepository
from projecthub.models.project import ProjectMember, ProjectMemberCreate


class SqliteProjectMemberRepository(IProjectMemberRepository):
    """SQLite implementation of project member repository."""

    def __init__(self, session_factory=None):
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: ProjectMemberORM, user: UserORM | None = None) -> ProjectMember:
        return ProjectMember(
            id=UUID(orm.id),
            project_id=UUID(orm.project_id),
            user_id=orm.user_id,
            is_lead=bool(orm.is_lead),
            joined_at=orm.joined_at,
            profile=user_summary(user),
        )

    async def create(self, project_id: UUID, member: ProjectMemberCreate) -> ProjectMember:
        async with open_session(self._session_factory) as session:
            orm = ProjectMemberORM(
                id=str(uuid4()),
                project_id=str(project_id),
                user_id=member.user_id,
                is_lead=member.is_lead,
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            user = await session.get(UserORM, member.user_id)
            return self._orm_to_model(orm, user)

    async def get_by_project_and_user_id(
        self, project_id: UUID, user_id: str
    ) -> Optional[ProjectMember]:
        async with open_session(self._session_factory) as session:
            result = await session.execute(
                select(ProjectMemberORM).where(
                    and_(
                        ProjectMemberORM.project_id == str(project_id),
                        ProjectMemberORM.user_id == user_id,
                    )
                )
            )
            orm = result.scalars().first()
            return self._orm_to_model(orm) if orm else None

    async def list_by_project(self, project_id: UUID) -> list[ProjectMember]:
        async with open_session(self._session_factory) as session:
            result = await session.execute(
                select(ProjectMemberORM, UserORM)
                .outerjoin(UserORM, UserORM.id == ProjectMemberORM.user_id)
                .where(ProjectMemberORM.project_id == str(project_id))
                .order_by(ProjectMemberORM.joined_at)
            )
            return [self._orm_to_model(member, user) for member, user in result.all()]
