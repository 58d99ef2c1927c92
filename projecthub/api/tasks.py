"""
Task board API endpoints.
"""

from uuid import UUID

from fastapi import APIRouter, status

from projecthub.api.deps import CurrentActor, TaskSvc
from projecthub.models.task import (
    Task,
    TaskComment,
    TaskCommentCreate,
    TaskCreate,
    TaskMove,
    TaskStats,
    TaskUpdate,
)

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("", response_model=Task, status_code=status.HTTP_201_CREATED)
async def create_task(task: TaskCreate, actor: CurrentActor, service: TaskSvc) -> Task:
    """Create a task at the end of its column."""
    return await service.create_task(actor, task)


@router.get("/project/{project_id}", response_model=list[Task])
async def list_tasks(project_id: UUID, actor: CurrentActor, service: TaskSvc) -> list[Task]:
    return await service.list_tasks(actor, project_id)


@router.get("/project/{project_id}/stats", response_model=TaskStats)
async def get_task_stats(project_id: UUID, actor: CurrentActor, service: TaskSvc) -> TaskStats:
    return await service.get_task_stats(actor, project_id)


@router.get("/{task_id}", response_model=Task)
async def get_task(task_id: UUID, actor: CurrentActor, service: TaskSvc) -> Task:
    return await service.get_task(actor, task_id)


@router.patch("/{task_id}", response_model=Task)
async def update_task(
    task_id: UUID,
    update: TaskUpdate,
    actor: CurrentActor,
    service: TaskSvc,
) -> Task:
    return await service.update_task(actor, task_id, update)


@router.put("/{task_id}/move", response_model=Task)
async def move_task(
    task_id: UUID,
    move: TaskMove,
    actor: CurrentActor,
    service: TaskSvc,
) -> Task:
    """Drag-and-drop: move a task to a column and slot."""
    return await service.update_task_status(actor, task_id, move.status, move.position)


@router.delete("/{task_id}")
async def delete_task(task_id: UUID, actor: CurrentActor, service: TaskSvc) -> dict:
    await service.delete_task(actor, task_id)
    return {"success": True}


@router.get("/{task_id}/comments", response_model=list[TaskComment])
async def list_comments(task_id: UUID, actor: CurrentActor, service: TaskSvc) -> list[TaskComment]:
    return await service.list_comments(actor, task_id)


@router.post("/{task_id}/comments", response_model=TaskComment, status_code=status.HTTP_201_CREATED)
async def add_comment(
    task_id: UUID,
    comment: TaskCommentCreate,
    actor: CurrentActor,
    service: TaskSvc,
) -> TaskComment:
    return await service.add_comment(actor, task_id, comment.content)
