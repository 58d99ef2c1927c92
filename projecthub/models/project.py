"""
Project model definitions.

A project is the aggregate root: it owns its milestones, tasks and members.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from projecthub.models.enums import ProjectStatus
from projecthub.models.user import UserSummary


class ProjectBase(BaseModel):
    """Base project fields."""

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value):
        # Forms send "ml, web, iot"
        if isinstance(value, str):
            return [tag.strip() for tag in value.split(",") if tag.strip()]
        return value


class ProjectCreate(ProjectBase):
    """Schema for creating a project."""

    pass


class Project(ProjectBase):
    """Complete project model."""

    id: UUID
    status: ProjectStatus = ProjectStatus.OPEN
    initiator_id: str
    final_mentor_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProjectMemberCreate(BaseModel):
    """Add a student to a project team."""

    user_id: str = Field(..., min_length=1, max_length=255)
    is_lead: bool = False


class ProjectMember(BaseModel):
    """Project team member."""

    id: UUID
    project_id: UUID
    user_id: str
    is_lead: bool = False
    joined_at: datetime
    profile: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class MentorAssignment(BaseModel):
    """Assign the final mentor of a project."""

    mentor_id: str = Field(..., min_length=1, max_length=255)
