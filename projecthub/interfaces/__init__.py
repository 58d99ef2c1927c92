"""Abstract interfaces for infrastructure abstraction."""

from projecthub.interfaces.auth_provider import IAuthProvider
from projecthub.interfaces.change_feed import IChangeFeed, Subscription
from projecthub.interfaces.milestone_repository import IMilestoneRepository
from projecthub.interfaces.project_member_repository import IProjectMemberRepository
from projecthub.interfaces.project_repository import IProjectRepository
from projecthub.interfaces.task_repository import ITaskRepository
from projecthub.interfaces.user_repository import IUserRepository

__all__ = [
    "IAuthProvider",
    "IChangeFeed",
    "IMilestoneRepository",
    "IProjectMemberRepository",
    "IProjectRepository",
    "ITaskRepository",
    "IUserRepository",
    "Subscription",
]
