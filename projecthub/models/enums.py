"""
Enum definitions for the application.

These enums are used across models and provide type-safe status/priority values.
Values match what is stored in the database and sent over the wire.
"""

from enum import Enum


class UserRole(str, Enum):
    """Portal-wide role of a user."""

    STUDENT = "student"
    MENTOR = "mentor"
    ADMIN = "admin"


class ProjectStatus(str, Enum):
    """Project status."""

    OPEN = "open"
    MENTOR_ASSIGNED = "mentor_assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class ProjectRole(str, Enum):
    """Role of a user within one project."""

    INITIATOR = "initiator"
    MENTOR = "mentor"
    MEMBER = "member"
    ADMIN = "admin"  # portal admin looking at someone else's project


class MilestoneStatus(str, Enum):
    """
    Milestone status.

    OVERDUE is derived at read time and never persisted.
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"

    @property
    def label(self) -> str:
        return _MILESTONE_STATUS_LABELS[self]


_MILESTONE_STATUS_LABELS = {
    MilestoneStatus.PENDING: "Pending",
    MilestoneStatus.IN_PROGRESS: "In Progress",
    MilestoneStatus.COMPLETED: "Completed",
    MilestoneStatus.OVERDUE: "Overdue",
}

PERSISTED_MILESTONE_STATUSES = frozenset(
    {MilestoneStatus.PENDING, MilestoneStatus.IN_PROGRESS, MilestoneStatus.COMPLETED}
)


class MilestoneActivityType(str, Enum):
    """Kind of entry in a milestone's audit trail."""

    COMMENT = "comment"
    PROGRESS_UPDATE = "progress_update"
    STATUS_CHANGE = "status_change"
    COMPLETION = "completion"
    CREATED = "created"


class TaskStatus(str, Enum):
    """Task board column."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    """Task priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ChangeEventKind(str, Enum):
    """Row-level change kinds delivered by the change feed."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class FeedTable(str, Enum):
    """Tables that publish to the change feed."""

    MILESTONES = "milestones"
    TASKS = "tasks"
    MILESTONE_ACTIVITIES = "milestone_activities"
    TASK_COMMENTS = "task_comments"
