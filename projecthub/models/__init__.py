"""Pydantic models (schemas) for the application."""

from projecthub.models.enums import (
    ChangeEventKind,
    FeedTable,
    MilestoneActivityType,
    MilestoneStatus,
    ProjectRole,
    ProjectStatus,
    TaskPriority,
    TaskStatus,
    UserRole,
)
from projecthub.models.milestone import (
    Milestone,
    MilestoneActivity,
    MilestoneActivityCreate,
    MilestoneCreate,
    MilestoneUpdate,
    TimelineStats,
)
from projecthub.models.project import Project, ProjectCreate, ProjectMember, ProjectMemberCreate
from projecthub.models.realtime import ChangeEvent
from projecthub.models.task import Task, TaskComment, TaskCreate, TaskMove, TaskStats, TaskUpdate
from projecthub.models.user import Actor, User, UserCreate, UserSummary

__all__ = [
    # Enums
    "ChangeEventKind",
    "FeedTable",
    "MilestoneActivityType",
    "MilestoneStatus",
    "ProjectRole",
    "ProjectStatus",
    "TaskPriority",
    "TaskStatus",
    "UserRole",
    # Milestones
    "Milestone",
    "MilestoneActivity",
    "MilestoneActivityCreate",
    "MilestoneCreate",
    "MilestoneUpdate",
    "TimelineStats",
    # Projects
    "Project",
    "ProjectCreate",
    "ProjectMember",
    "ProjectMemberCreate",
    # Tasks
    "Task",
    "TaskComment",
    "TaskCreate",
    "TaskMove",
    "TaskStats",
    "TaskUpdate",
    # Users
    "Actor",
    "User",
    "UserCreate",
    "UserSummary",
    # Realtime
    "ChangeEvent",
]
