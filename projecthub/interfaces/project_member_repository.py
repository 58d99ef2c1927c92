"""
Project member repository interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from projecthub.models.project import ProjectMember, ProjectMemberCreate


class IProjectMemberRepository(ABC):
    """Abstract interface for project team membership."""

    @abstractmethod
    async def create(self, project_id: UUID, member: ProjectMemberCreate) -> ProjectMember:
        """Add a member to a project."""
        pass

    @abstractmethod
    async def get_by_project_and_user_id(
        self, project_id: UUID, user_id: str
    ) -> Optional[ProjectMember]:
        """Get one membership, if it exists."""
        pass

    @abstractmethod
    async def list_by_project(self, project_id: UUID) -> list[ProjectMember]:
        """List members of a project, with profiles resolved."""
        pass
