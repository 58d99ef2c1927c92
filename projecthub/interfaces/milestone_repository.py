"""
Milestone repository interface.

Defines the contract for milestone data operations.
"""

from abc import ABC, abstractmethod
from typing import Any
from uuid import UUID

from projecthub.models.milestone import (
    Milestone,
    MilestoneActivity,
    MilestoneActivityCreate,
    MilestoneCreate,
)


class IMilestoneRepository(ABC):
    """Interface for milestone repository operations."""

    @abstractmethod
    async def create(self, user_id: str, milestone: MilestoneCreate) -> Milestone:
        """Create a new milestone at the end of the project's ordering."""
        pass

    @abstractmethod
    async def get(self, milestone_id: UUID) -> Milestone | None:
        """Get a milestone by ID with its assignee resolved. Persisted status only."""
        pass

    @abstractmethod
    async def get_project_id(self, milestone_id: UUID) -> UUID | None:
        """Get project ID for a milestone."""
        pass

    @abstractmethod
    async def list_by_project(self, project_id: UUID) -> list[Milestone]:
        """List milestones for a project ordered by due date. Persisted status only."""
        pass

    @abstractmethod
    async def update(self, milestone_id: UUID, changes: dict[str, Any]) -> Milestone:
        """Apply column changes. Raises NotFoundError if missing."""
        pass

    @abstractmethod
    async def delete(self, milestone_id: UUID) -> bool:
        """Delete a milestone and its activities. Returns True if deleted, False if not found."""
        pass

    @abstractmethod
    async def add_activity(
        self, milestone_id: UUID, user_id: str, activity: MilestoneActivityCreate
    ) -> MilestoneActivity:
        """Append one activity row."""
        pass

    @abstractmethod
    async def list_activities(self, milestone_id: UUID) -> list[MilestoneActivity]:
        """List activities for a milestone, newest first."""
        pass
