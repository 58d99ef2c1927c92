"""
SQLite implementation of Task repository.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import and_, delete, func, select
from sqlalchemy.orm import aliased

from projecthub.core.exceptions import NotFoundError
from projecthub.infrastructure.local.database import (
    TaskCommentORM,
    TaskORM,
    UserORM,
    get_session_factory,
    open_session,
    row_to_dict,
    to_naive_utc,
)
from projecthub.infrastructure.local.user_repository import user_summary
from projecthub.interfaces.change_feed import IChangeFeed
from projecthub.interfaces.task_repository import ITaskRepository
from projecthub.models.enums import ChangeEventKind, FeedTable, TaskPriority, TaskStatus
from projecthub.models.realtime import ChangeEvent
from projecthub.models.task import Task, TaskComment, TaskCreate

_UPDATABLE_FIELDS = {
    "title",
    "description",
    "status",
    "priority",
    "assigned_to",
    "due_date",
    "completed_at",
    "position",
}


def _column_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return to_naive_utc(value)
    return value


class SqliteTaskRepository(ITaskRepository):
    """SQLite implementation of task repository."""

    def __init__(self, session_factory=None, change_feed: IChangeFeed | None = None):
        """
        Initialize repository.

        Args:
            session_factory: Optional session factory (for testing)
            change_feed: Receives an event after every committed write
        """
        self._session_factory = session_factory or get_session_factory()
        self._change_feed = change_feed

    def _orm_to_model(
        self,
        orm: TaskORM,
        assignee: UserORM | None = None,
        creator: UserORM | None = None,
    ) -> Task:
        """Convert ORM object to Pydantic model."""
        return Task(
            id=UUID(orm.id),
            project_id=UUID(orm.project_id),
            title=orm.title,
            description=orm.description,
            status=TaskStatus(orm.status),
            priority=TaskPriority(orm.priority),
            assigned_to=orm.assigned_to,
            created_by=orm.created_by,
            due_date=orm.due_date,
            completed_at=orm.completed_at,
            position=orm.position or 0,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
            assignee=user_summary(assignee),
            creator=user_summary(creator),
        )

    def _comment_to_model(self, orm: TaskCommentORM, user: UserORM | None = None) -> TaskComment:
        return TaskComment(
            id=UUID(orm.id),
            task_id=UUID(orm.task_id),
            user_id=orm.user_id,
            content=orm.content,
            created_at=orm.created_at,
            user=user_summary(user),
        )

    def _joined_select(self):
        assignee = aliased(UserORM)
        creator = aliased(UserORM)
        return (
            select(TaskORM, assignee, creator)
            .outerjoin(assignee, assignee.id == TaskORM.assigned_to)
            .outerjoin(creator, creator.id == TaskORM.created_by)
        )

    async def _fetch_joined(self, session, task_id: str) -> Optional[Task]:
        row = (await session.execute(self._joined_select().where(TaskORM.id == task_id))).first()
        return self._orm_to_model(*row) if row else None

    async def _publish_all(self, events: list[ChangeEvent]) -> None:
        if not self._change_feed:
            return
        for event in events:
            await self._change_feed.publish(event)

    def _event(
        self,
        kind: ChangeEventKind,
        new_row: dict[str, Any] | None = None,
        old_row: dict[str, Any] | None = None,
    ) -> ChangeEvent:
        row = new_row or old_row
        return ChangeEvent(
            table=FeedTable.TASKS,
            event_kind=kind,
            row_id=UUID(row["id"]),
            project_id=UUID(row["project_id"]),
            new_row=new_row,
            old_row=old_row,
        )

    async def create(self, user_id: str, task: TaskCreate) -> Task:
        """Create a new task after the highest position in its column."""
        async with open_session(self._session_factory) as session:
            max_position = (
                await session.execute(
                    select(func.max(TaskORM.position)).where(
                        and_(
                            TaskORM.project_id == str(task.project_id),
                            TaskORM.status == task.status.value,
                        )
                    )
                )
            ).scalar()
            orm = TaskORM(
                id=str(uuid4()),
                project_id=str(task.project_id),
                title=task.title,
                description=task.description,
                status=task.status.value,
                priority=task.priority.value,
                assigned_to=task.assigned_to,
                created_by=user_id,
                due_date=to_naive_utc(task.due_date),
                completed_at=datetime.utcnow() if task.status == TaskStatus.COMPLETED else None,
                position=(max_position or 0) + 1,
            )
            session.add(orm)
            await session.commit()
            new_row = row_to_dict(orm)
            created = await self._fetch_joined(session, orm.id)

        await self._publish_all([self._event(ChangeEventKind.INSERT, new_row=new_row)])
        return created

    async def get(self, task_id: UUID) -> Optional[Task]:
        async with open_session(self._session_factory) as session:
            return await self._fetch_joined(session, str(task_id))

    async def list_by_project(self, project_id: UUID) -> list[Task]:
        async with open_session(self._session_factory) as session:
            result = await session.execute(
                self._joined_select()
                .where(TaskORM.project_id == str(project_id))
                .order_by(TaskORM.position.asc(), TaskORM.created_at.desc())
            )
            return [self._orm_to_model(*row) for row in result.all()]

    async def update(self, task_id: UUID, changes: dict[str, Any]) -> Task:
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update task fields: {sorted(unknown)}")

        async with open_session(self._session_factory) as session:
            result = await session.execute(select(TaskORM).where(TaskORM.id == str(task_id)))
            orm = result.scalar_one_or_none()
            if not orm:
                raise NotFoundError(f"Task {task_id} not found")

            old_row = row_to_dict(orm)
            for field, value in changes.items():
                setattr(orm, field, _column_value(value))
            orm.updated_at = datetime.utcnow()
            await session.commit()
            new_row = row_to_dict(orm)
            updated = await self._fetch_joined(session, orm.id)

        await self._publish_all([self._event(ChangeEventKind.UPDATE, new_row=new_row, old_row=old_row)])
        return updated

    async def move(
        self,
        task_id: UUID,
        status: TaskStatus,
        position: int,
        changes: Optional[dict[str, Any]] = None,
    ) -> Task:
        """Shift the destination column and write the moved task in one transaction."""
        changes = dict(changes or {})
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update task fields: {sorted(unknown)}")

        shifted: list[tuple[TaskORM, dict[str, Any]]] = []
        async with open_session(self._session_factory) as session:
            result = await session.execute(select(TaskORM).where(TaskORM.id == str(task_id)))
            orm = result.scalar_one_or_none()
            if not orm:
                raise NotFoundError(f"Task {task_id} not found")

            now = datetime.utcnow()
            if orm.status != status.value:
                siblings = (
                    await session.execute(
                        select(TaskORM).where(
                            and_(
                                TaskORM.project_id == orm.project_id,
                                TaskORM.status == status.value,
                                TaskORM.position >= position,
                                TaskORM.id != orm.id,
                            )
                        )
                    )
                ).scalars().all()
                for sibling in siblings:
                    old_sibling = row_to_dict(sibling)
                    sibling.position = (sibling.position or 0) + 1
                    sibling.updated_at = now
                    shifted.append((sibling, old_sibling))

            old_row = row_to_dict(orm)
            orm.status = status.value
            orm.position = position
            for field, value in changes.items():
                setattr(orm, field, _column_value(value))
            orm.updated_at = now
            await session.commit()

            events = [
                self._event(ChangeEventKind.UPDATE, new_row=row_to_dict(sibling), old_row=old_sibling)
                for sibling, old_sibling in shifted
            ]
            events.append(self._event(ChangeEventKind.UPDATE, new_row=row_to_dict(orm), old_row=old_row))
            moved = await self._fetch_joined(session, orm.id)

        await self._publish_all(events)
        return moved

    async def delete(self, task_id: UUID) -> bool:
        """Delete a task together with its comments."""
        async with open_session(self._session_factory) as session:
            result = await session.execute(select(TaskORM).where(TaskORM.id == str(task_id)))
            orm = result.scalar_one_or_none()
            if not orm:
                return False

            old_row = row_to_dict(orm)
            await session.execute(delete(TaskCommentORM).where(TaskCommentORM.task_id == str(task_id)))
            await session.delete(orm)
            await session.commit()

        await self._publish_all([self._event(ChangeEventKind.DELETE, old_row=old_row)])
        return True

    async def count_by_status(self, project_id: UUID) -> dict[TaskStatus, int]:
        async with open_session(self._session_factory) as session:
            result = await session.execute(
                select(TaskORM.status, func.count())
                .where(TaskORM.project_id == str(project_id))
                .group_by(TaskORM.status)
            )
            counts = {status: 0 for status in TaskStatus}
            for status_value, count in result.all():
                counts[TaskStatus(status_value)] = count
            return counts

    async def add_comment(self, task_id: UUID, user_id: str, content: str) -> TaskComment:
        async with open_session(self._session_factory) as session:
            project_id = (
                await session.execute(select(TaskORM.project_id).where(TaskORM.id == str(task_id)))
            ).scalar_one_or_none()
            if not project_id:
                raise NotFoundError(f"Task {task_id} not found")

            orm = TaskCommentORM(
                id=str(uuid4()),
                task_id=str(task_id),
                user_id=user_id,
                content=content,
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            user = await session.get(UserORM, user_id)
            new_row = row_to_dict(orm)
            comment = self._comment_to_model(orm, user)

        if self._change_feed:
            await self._change_feed.publish(
                ChangeEvent(
                    table=FeedTable.TASK_COMMENTS,
                    event_kind=ChangeEventKind.INSERT,
                    row_id=comment.id,
                    project_id=UUID(project_id),
                    new_row=new_row,
                )
            )
        return comment

    async def list_comments(self, task_id: UUID) -> list[TaskComment]:
        async with open_session(self._session_factory) as session:
            result = await session.execute(
                select(TaskCommentORM, UserORM)
                .outerjoin(UserORM, UserORM.id == TaskCommentORM.user_id)
                .where(TaskCommentORM.task_id == str(task_id))
                .order_by(TaskCommentORM.created_at.asc())
            )
            return [self._comment_to_model(orm, user) for orm, user in result.all()]
