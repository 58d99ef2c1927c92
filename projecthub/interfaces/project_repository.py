"""
Project repository interface.

Defines the contract for project persistence operations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from projecthub.models.enums import ProjectStatus
from projecthub.models.project import Project, ProjectCreate


class IProjectRepository(ABC):
    """Abstract interface for project persistence."""

    @abstractmethod
    async def create(self, initiator_id: str, project: ProjectCreate) -> Project:
        """
        Create a new project.

        Args:
            initiator_id: User proposing the project
            project: Project creation data

        Returns:
            Created project
        """
        pass

    @abstractmethod
    async def get(self, project_id: UUID) -> Optional[Project]:
        """
        Get a project by ID.

        Returns:
            Project if found, None otherwise
        """
        pass

    @abstractmethod
    async def assign_mentor(
        self, project_id: UUID, mentor_id: str, status: ProjectStatus
    ) -> Project:
        """Set the final mentor and project status. Raises NotFoundError if missing."""
        pass

    @abstractmethod
    async def delete(self, project_id: UUID) -> bool:
        """
        Delete a project and everything it owns.

        Milestones, milestone activities, tasks, task comments and members
        are removed in the same transaction.

        Returns:
            True if deleted, False if not found
        """
        pass
