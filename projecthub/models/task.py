"""
Task model definitions.

Tasks live on a project's kanban board: one column per status, ordered by
position inside the column.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from projecthub.models.enums import TaskPriority, TaskStatus
from projecthub.models.milestone import normalize_assignee
from projecthub.models.user import UserSummary
from projecthub.utils.datetime_utils import ensure_utc


class TaskBase(BaseModel):
    """Base task fields."""

    title: str = Field(..., min_length=1, max_length=500, description="Task title")
    description: Optional[str] = Field(None, max_length=5000, description="Task description")
    status: TaskStatus = Field(TaskStatus.TODO, description="Board column")
    priority: TaskPriority = Field(TaskPriority.MEDIUM, description="Task priority")
    assigned_to: Optional[str] = Field(None, max_length=255, description="Assignee user ID")
    due_date: Optional[datetime] = Field(None, description="Due date")

    @field_validator("assigned_to", mode="before")
    @classmethod
    def _normalize_assignee(cls, value):
        return normalize_assignee(value)

    @field_validator("due_date")
    @classmethod
    def _due_date_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)


class TaskCreate(TaskBase):
    """Schema for creating a new task."""

    project_id: UUID


class TaskUpdate(BaseModel):
    """Schema for updating an existing task."""

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = Field(None, max_length=5000)
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    assigned_to: Optional[str] = Field(None, max_length=255)
    due_date: Optional[datetime] = None

    @field_validator("assigned_to", mode="before")
    @classmethod
    def _normalize_assignee(cls, value):
        return normalize_assignee(value)

    @field_validator("due_date")
    @classmethod
    def _due_date_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)


class TaskMove(BaseModel):
    """Drag-and-drop move: target column and slot."""

    status: TaskStatus
    position: int = Field(..., ge=0)


class Task(TaskBase):
    """Complete task model with user joins resolved when possible."""

    id: UUID
    project_id: UUID
    created_by: str
    completed_at: Optional[datetime] = None
    position: int = 0
    created_at: datetime
    updated_at: datetime
    assignee: Optional[UserSummary] = None
    creator: Optional[UserSummary] = None

    class Config:
        from_attributes = True

    @field_validator("completed_at", "created_at", "updated_at")
    @classmethod
    def _timestamps_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)


class TaskCommentCreate(BaseModel):
    """Schema for creating a comment."""

    content: str = Field(..., max_length=2000, description="Comment text")


class TaskComment(BaseModel):
    """Task discussion entry."""

    id: UUID
    task_id: UUID
    user_id: str
    content: str
    created_at: datetime
    user: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class TaskStats(BaseModel):
    """Per-column counts for a project's board."""

    todo: int = 0
    in_progress: int = 0
    review: int = 0
    completed: int = 0
    total: int = 0
