"""
SQLite implementation of Project repository.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import delete, select

from projecthub.core.exceptions import NotFoundError
from projecthub.infrastructure.local.database import (
    MilestoneActivityORM,
    MilestoneORM,
    ProjectMemberORM,
    ProjectORM,
    TaskCommentORM,
    TaskORM,
    get_session_factory,
    open_session,
    row_to_dict,
)
from projecthub.interfaces.change_feed import IChangeFeed
from projecthub.interfaces.project_repository import IProjectRepository
from projecthub.models.enums import ChangeEventKind, FeedTable, ProjectStatus
from projecthub.models.project import Project, ProjectCreate
from projecthub.models.realtime import ChangeEvent


class SqliteProjectRepository(IProjectRepository):
    """SQLite implementation of project repository."""

    def __init__(self, session_factory=None, change_feed: IChangeFeed | None = None):
        """
        Initialize repository.

        Args:
            session_factory: Optional session factory (for testing)
            change_feed: Receives delete events for cascaded milestones and tasks
        """
        self._session_factory = session_factory or get_session_factory()
        self._change_feed = change_feed

    def _orm_to_model(self, orm: ProjectORM) -> Project:
        return Project(
            id=UUID(orm.id),
            title=orm.title,
            description=orm.description,
            tags=orm.tags or [],
            status=ProjectStatus(orm.status),
            initiator_id=orm.initiator_id,
            final_mentor_id=orm.final_mentor_id,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )

    async def create(self, initiator_id: str, project: ProjectCreate) -> Project:
        async with open_session(self._session_factory) as session:
            orm = ProjectORM(
                id=str(uuid4()),
                title=project.title,
                description=project.description,
                tags=project.tags,
                status=ProjectStatus.OPEN.value,
                initiator_id=initiator_id,
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def get(self, project_id: UUID) -> Optional[Project]:
        async with open_session(self._session_factory) as session:
            result = await session.execute(
                select(ProjectORM).where(ProjectORM.id == str(project_id))
            )
            orm = result.scalar_one_or_none()
            return self._orm_to_model(orm) if orm else None

    async def assign_mentor(
        self, project_id: UUID, mentor_id: str, status: ProjectStatus
    ) -> Project:
        async with open_session(self._session_factory) as session:
            result = await session.execute(
                select(ProjectORM).where(ProjectORM.id == str(project_id))
            )
            orm = result.scalar_one_or_none()
            if not orm:
                raise NotFoundError(f"Project {project_id} not found")
            orm.final_mentor_id = mentor_id
            orm.status = status.value
            orm.updated_at = datetime.utcnow()
            await session.commit()
            await session.refresh(orm)
            return self._orm_to_model(orm)

    async def delete(self, project_id: UUID) -> bool:
        """Delete a project, cascading to everything it owns."""
        pid = str(project_id)
        async with open_session(self._session_factory) as session:
            result = await session.execute(select(ProjectORM).where(ProjectORM.id == pid))
            orm = result.scalar_one_or_none()
            if not orm:
                return False

            milestone_rows = (
                await session.execute(select(MilestoneORM).where(MilestoneORM.project_id == pid))
            ).scalars().all()
            task_rows = (
                await session.execute(select(TaskORM).where(TaskORM.project_id == pid))
            ).scalars().all()
            removed = [
                (FeedTable.MILESTONES, row.id, row_to_dict(row)) for row in milestone_rows
            ] + [(FeedTable.TASKS, row.id, row_to_dict(row)) for row in task_rows]

            milestone_ids = select(MilestoneORM.id).where(MilestoneORM.project_id == pid)
            task_ids = select(TaskORM.id).where(TaskORM.project_id == pid)
            await session.execute(
                delete(MilestoneActivityORM).where(MilestoneActivityORM.milestone_id.in_(milestone_ids))
            )
            await session.execute(delete(TaskCommentORM).where(TaskCommentORM.task_id.in_(task_ids)))
            await session.execute(delete(MilestoneORM).where(MilestoneORM.project_id == pid))
            await session.execute(delete(TaskORM).where(TaskORM.project_id == pid))
            await session.execute(delete(ProjectMemberORM).where(ProjectMemberORM.project_id == pid))
            await session.delete(orm)
            await session.commit()

        if self._change_feed:
            for table, row_id, old_row in removed:
                await self._change_feed.publish(
                    ChangeEvent(
                        table=table,
                        event_kind=ChangeEventKind.DELETE,
                        row_id=UUID(row_id),
                        project_id=project_id,
                        old_row=old_row,
                    )
                )
        return True
