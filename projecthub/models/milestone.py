"""
Milestone model definitions.

Milestones are project-level checkpoints with a due date and a progress
percentage. Each one carries an append-only activity trail.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from projecthub.models.enums import MilestoneActivityType, MilestoneStatus
from projecthub.models.user import UserSummary
from projecthub.utils.datetime_utils import ensure_utc, now_utc

UNASSIGNED = "unassigned"


def normalize_assignee(value: Optional[str]) -> Optional[str]:
    """Map the "unassigned" form token (and blanks) to no assignee."""
    if value is None:
        return None
    value = value.strip()
    if not value or value == UNASSIGNED:
        return None
    return value


class MilestoneBase(BaseModel):
    """Base milestone fields."""

    project_id: UUID = Field(..., description="Project ID")
    title: str = Field(..., min_length=1, max_length=200, description="Milestone title")
    description: Optional[str] = Field(None, max_length=2000, description="Milestone description")
    due_date: datetime = Field(..., description="Target due date")
    assigned_to: Optional[str] = Field(None, max_length=255, description="Assignee user ID")

    @field_validator("assigned_to", mode="before")
    @classmethod
    def _normalize_assignee(cls, value):
        return normalize_assignee(value)

    @field_validator("due_date")
    @classmethod
    def _due_date_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class MilestoneCreate(MilestoneBase):
    """Schema for creating a milestone."""

    pass


class MilestoneUpdate(BaseModel):
    """Schema for updating a milestone."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    due_date: Optional[datetime] = None
    assigned_to: Optional[str] = Field(None, max_length=255)
    status: Optional[MilestoneStatus] = None

    @field_validator("assigned_to", mode="before")
    @classmethod
    def _normalize_assignee(cls, value):
        return normalize_assignee(value)

    @field_validator("due_date")
    @classmethod
    def _due_date_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)


class ProgressUpdate(BaseModel):
    """Request body for a progress change."""

    progress: int


class StatusUpdate(BaseModel):
    """Request body for a status change."""

    status: MilestoneStatus


class Milestone(MilestoneBase):
    """Complete milestone model, with the assignee join resolved when possible."""

    id: UUID
    status: MilestoneStatus = MilestoneStatus.PENDING
    progress: int = Field(0, ge=0, le=100)
    created_by: str
    completed_at: Optional[datetime] = None
    position: int = 0
    created_at: datetime
    updated_at: datetime
    # None when unassigned, and also when the referenced user no longer exists
    assignee: Optional[UserSummary] = None

    class Config:
        from_attributes = True

    @field_validator("completed_at", "created_at", "updated_at")
    @classmethod
    def _timestamps_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        if self.status == MilestoneStatus.COMPLETED:
            return False
        return self.due_date < (now or now_utc())

    def with_derived_status(self, now: Optional[datetime] = None) -> "Milestone":
        """
        Return the milestone as it should be shown at `now`.

        Overdue replaces the persisted status when the due date has passed
        and the milestone is not completed. The stored row is untouched.
        """
        if self.is_overdue(now):
            return self.model_copy(update={"status": MilestoneStatus.OVERDUE})
        return self


class MilestoneActivityCreate(BaseModel):
    """Schema for appending to a milestone's activity trail."""

    activity_type: MilestoneActivityType = MilestoneActivityType.COMMENT
    description: str = Field(..., min_length=1, max_length=2000)
    metadata: Optional[dict[str, Any]] = None


class MilestoneActivity(BaseModel):
    """One immutable audit entry."""

    id: UUID
    milestone_id: UUID
    user_id: str
    activity_type: MilestoneActivityType
    description: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    user: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class UpcomingDeadline(BaseModel):
    id: UUID
    title: str
    due_date: datetime
    days_until_due: int


class RecentCompletion(BaseModel):
    id: UUID
    title: str
    completed_at: datetime


class TimelineStats(BaseModel):
    """Aggregates shown above a project's timeline."""

    total_milestones: int = 0
    completed_milestones: int = 0
    in_progress_milestones: int = 0
    overdue_milestones: int = 0
    overall_progress: int = 0
    upcoming_deadlines: list[UpcomingDeadline] = Field(default_factory=list)
    recent_completions: list[RecentCompletion] = Field(default_factory=list)
