"""
Task repository interface.

Defines the contract for task persistence operations.
Implementations can use SQLite or any relational store.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional
from uuid import UUID

from projecthub.models.enums import TaskStatus
from projecthub.models.task import Task, TaskComment, TaskCreate


class ITaskRepository(ABC):
    """Abstract interface for task persistence."""

    @abstractmethod
    async def create(self, user_id: str, task: TaskCreate) -> Task:
        """
        Create a new task at the bottom of its status column.

        Args:
            user_id: Creator user ID
            task: Task creation data

        Returns:
            Created task with generated ID
        """
        pass

    @abstractmethod
    async def get(self, task_id: UUID) -> Optional[Task]:
        """Get a task by ID with assignee and creator resolved."""
        pass

    @abstractmethod
    async def list_by_project(self, project_id: UUID) -> list[Task]:
        """List tasks ordered by position ascending, newest first on ties."""
        pass

    @abstractmethod
    async def update(self, task_id: UUID, changes: dict[str, Any]) -> Task:
        """Apply column changes. Raises NotFoundError if missing."""
        pass

    @abstractmethod
    async def move(
        self,
        task_id: UUID,
        status: TaskStatus,
        position: int,
        changes: Optional[dict[str, Any]] = None,
    ) -> Task:
        """
        Move a task to (status, position).

        When the column changes, tasks in the destination column at or after
        `position` shift down by one. The shift and the write are one
        transaction. Raises NotFoundError if missing.
        """
        pass

    @abstractmethod
    async def delete(self, task_id: UUID) -> bool:
        """Delete a task and its comments. Returns True if deleted, False if not found."""
        pass

    @abstractmethod
    async def count_by_status(self, project_id: UUID) -> dict[TaskStatus, int]:
        """Count tasks per status column."""
        pass

    @abstractmethod
    async def add_comment(self, task_id: UUID, user_id: str, content: str) -> TaskComment:
        """Add a comment to a task."""
        pass

    @abstractmethod
    async def list_comments(self, task_id: UUID) -> list[TaskComment]:
        """List comments for a task, oldest first."""
        pass
