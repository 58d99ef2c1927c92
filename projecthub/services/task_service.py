"""
Task board.

Tasks sit in one column per status and are ordered by position inside the
column. Dropping a task into another column shifts the destination column
down to make room; the shift and the moved row are written together.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable
from uuid import UUID

from projecthub.core.exceptions import NotFoundError, ValidationError
from projecthub.core.logger import setup_logger
from projecthub.interfaces.project_member_repository import IProjectMemberRepository
from projecthub.interfaces.project_repository import IProjectRepository
from projecthub.interfaces.task_repository import ITaskRepository
from projecthub.models.enums import TaskStatus
from projecthub.models.task import Task, TaskComment, TaskCreate, TaskStats, TaskUpdate
from projecthub.models.user import Actor
from projecthub.services.project_permissions import (
    ProjectAccess,
    ProjectAction,
    ensure_actor,
    require_project_action,
)
from projecthub.utils.datetime_utils import now_utc

logger = setup_logger(__name__)


class TaskBoardService:
    def __init__(
        self,
        task_repo: ITaskRepository,
        project_repo: IProjectRepository,
        member_repo: IProjectMemberRepository,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.task_repo = task_repo
        self.project_repo = project_repo
        self.member_repo = member_repo
        self._clock = clock

    async def _access(self, actor: Actor | None, project_id: UUID, action: ProjectAction) -> ProjectAccess:
        return await require_project_action(actor, project_id, self.project_repo, self.member_repo, action)

    async def _task_with_access(
        self, actor: Actor | None, task_id: UUID, action: ProjectAction
    ) -> tuple[Task, ProjectAccess]:
        ensure_actor(actor)
        task = await self.task_repo.get(task_id)
        if not task:
            raise NotFoundError(f"Task {task_id} not found")
        access = await self._access(actor, task.project_id, action)
        return task, access

    async def create_task(self, actor: Actor | None, data: TaskCreate) -> Task:
        actor = ensure_actor(actor)
        await self._access(actor, data.project_id, ProjectAction.TASK_MANAGE)
        task = await self.task_repo.create(actor.id, data)
        logger.info("Task %s created in %s column of project %s", task.id, task.status.value, task.project_id)
        return task

    async def update_task(self, actor: Actor | None, task_id: UUID, update: TaskUpdate) -> Task:
        """Write exactly the fields that were sent."""
        _, access = await self._task_with_access(actor, task_id, ProjectAction.TASK_MANAGE)
        changes = update.model_dump(exclude_unset=True)
        for required in ("title", "status", "priority"):
            if required in changes and changes[required] is None:
                raise ValidationError(f"{required} cannot be cleared")
        if not changes:
            return await self.get_task(access.actor, task_id)

        task = await self.task_repo.update(task_id, changes)
        logger.info("Task %s updated by %s: %s", task_id, access.actor.id, sorted(changes))
        return task

    async def update_task_status(
        self,
        actor: Actor | None,
        task_id: UUID,
        new_status: TaskStatus,
        new_position: int,
    ) -> Task:
        """
        Move a task to (new_status, new_position).

        Changing column pushes every task at or after new_position in the
        destination column down by one. Reordering inside a column only
        rewrites the moved task's position.
        """
        task, access = await self._task_with_access(actor, task_id, ProjectAction.TASK_MANAGE)
        try:
            new_status = TaskStatus(new_status)
        except ValueError:
            raise ValidationError(f"Unknown task status '{new_status}'")
        if new_position < 0:
            raise ValidationError("Position must be zero or greater")

        changes: dict[str, Any] = {}
        if new_status == TaskStatus.COMPLETED and task.status != TaskStatus.COMPLETED:
            changes["completed_at"] = self._clock()
        elif new_status != TaskStatus.COMPLETED and task.completed_at is not None:
            changes["completed_at"] = None

        moved = await self.task_repo.move(task_id, new_status, new_position, changes)
        logger.info(
            "Task %s moved %s -> %s at position %d by %s",
            task_id,
            task.status.value,
            new_status.value,
            new_position,
            access.actor.id,
        )
        return moved

    async def delete_task(self, actor: Actor | None, task_id: UUID) -> None:
        _, access = await self._task_with_access(actor, task_id, ProjectAction.TASK_MANAGE)
        if not await self.task_repo.delete(task_id):
            raise NotFoundError(f"Task {task_id} not found")
        logger.info("Task %s deleted by %s", task_id, access.actor.id)

    async def get_task(self, actor: Actor | None, task_id: UUID) -> Task:
        task, _ = await self._task_with_access(actor, task_id, ProjectAction.PROJECT_READ)
        return task

    async def list_tasks(self, actor: Actor | None, project_id: UUID) -> list[Task]:
        await self._access(actor, project_id, ProjectAction.PROJECT_READ)
        return await self.task_repo.list_by_project(project_id)

    async def get_task_stats(self, actor: Actor | None, project_id: UUID) -> TaskStats:
        await self._access(actor, project_id, ProjectAction.PROJECT_READ)
        counts = await self.task_repo.count_by_status(project_id)
        return TaskStats(
            todo=counts.get(TaskStatus.TODO, 0),
            in_progress=counts.get(TaskStatus.IN_PROGRESS, 0),
            review=counts.get(TaskStatus.REVIEW, 0),
            completed=counts.get(TaskStatus.COMPLETED, 0),
            total=sum(counts.values()),
        )

    # ===========================================
    # Comments
    # ===========================================

    async def add_comment(self, actor: Actor | None, task_id: UUID, content: str) -> TaskComment:
        _, access = await self._task_with_access(actor, task_id, ProjectAction.TASK_MANAGE)
        content = (content or "").strip()
        if not content:
            raise ValidationError("Comment cannot be empty")
        return await self.task_repo.add_comment(task_id, access.actor.id, content)

    async def list_comments(self, actor: Actor | None, task_id: UUID) -> list[TaskComment]:
        await self._task_with_access(actor, task_id, ProjectAction.PROJECT_READ)
        return await self.task_repo.list_comments(task_id)
