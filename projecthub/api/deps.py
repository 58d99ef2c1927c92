"""
Dependency injection for API endpoints.

This module provides FastAPI dependencies that inject the configured
infrastructure implementations and the services built on top of them.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header

from projecthub.core.config import get_settings
from projecthub.core.exceptions import UnauthorizedError
from projecthub.interfaces.auth_provider import IAuthProvider
from projecthub.interfaces.change_feed import IChangeFeed
from projecthub.interfaces.milestone_repository import IMilestoneRepository
from projecthub.interfaces.project_member_repository import IProjectMemberRepository
from projecthub.interfaces.project_repository import IProjectRepository
from projecthub.interfaces.task_repository import ITaskRepository
from projecthub.interfaces.user_repository import IUserRepository
from projecthub.models.user import Actor
from projecthub.services.milestone_service import MilestoneService
from projecthub.services.project_service import ProjectService
from projecthub.services.task_service import TaskBoardService


# ===========================================
# Change Feed
# ===========================================


def get_change_feed() -> IChangeFeed:
    """Get the process-wide change feed."""
    from projecthub.services.realtime_service import change_feed

    return change_feed


# ===========================================
# Repository Dependencies
# ===========================================


@lru_cache()
def get_user_repository() -> IUserRepository:
    """Get user repository instance."""
    from projecthub.infrastructure.local.user_repository import SqliteUserRepository

    return SqliteUserRepository()


@lru_cache()
def get_project_repository() -> IProjectRepository:
    """Get project repository instance."""
    from projecthub.infrastructure.local.project_repository import SqliteProjectRepository

    return SqliteProjectRepository(change_feed=get_change_feed())


@lru_cache()
def get_project_member_repository() -> IProjectMemberRepository:
    """Get project member repository instance."""
    from projecthub.infrastructure.local.project_member_repository import (
        SqliteProjectMemberRepository,
    )

    return SqliteProjectMemberRepository()


@lru_cache()
def get_milestone_repository() -> IMilestoneRepository:
    """Get milestone repository instance."""
    from projecthub.infrastructure.local.milestone_repository import SqliteMilestoneRepository

    return SqliteMilestoneRepository(change_feed=get_change_feed())


@lru_cache()
def get_task_repository() -> ITaskRepository:
    """Get task repository instance."""
    from projecthub.infrastructure.local.task_repository import SqliteTaskRepository

    return SqliteTaskRepository(change_feed=get_change_feed())


@lru_cache()
def get_auth_provider() -> IAuthProvider:
    """Get auth provider instance."""
    settings = get_settings()
    if settings.AUTH_PROVIDER == "local":
        from projecthub.infrastructure.auth.local_auth import LocalAuthProvider

        return LocalAuthProvider(settings, get_user_repository())

    from projecthub.infrastructure.auth.mock_auth import MockAuthProvider

    return MockAuthProvider(get_user_repository())


UserRepo = Annotated[IUserRepository, Depends(get_user_repository)]
ProjectRepo = Annotated[IProjectRepository, Depends(get_project_repository)]
ProjectMemberRepo = Annotated[IProjectMemberRepository, Depends(get_project_member_repository)]
MilestoneRepo = Annotated[IMilestoneRepository, Depends(get_milestone_repository)]
TaskRepo = Annotated[ITaskRepository, Depends(get_task_repository)]
ChangeFeed = Annotated[IChangeFeed, Depends(get_change_feed)]


# ===========================================
# Services
# ===========================================


def get_project_service(project_repo: ProjectRepo, member_repo: ProjectMemberRepo) -> ProjectService:
    return ProjectService(project_repo, member_repo)


def get_milestone_service(
    milestone_repo: MilestoneRepo,
    project_repo: ProjectRepo,
    member_repo: ProjectMemberRepo,
) -> MilestoneService:
    return MilestoneService(milestone_repo, project_repo, member_repo)


def get_task_service(
    task_repo: TaskRepo,
    project_repo: ProjectRepo,
    member_repo: ProjectMemberRepo,
) -> TaskBoardService:
    return TaskBoardService(task_repo, project_repo, member_repo)


ProjectSvc = Annotated[ProjectService, Depends(get_project_service)]
MilestoneSvc = Annotated[MilestoneService, Depends(get_milestone_service)]
TaskSvc = Annotated[TaskBoardService, Depends(get_task_service)]


# ===========================================
# User Authentication
# ===========================================


async def get_current_actor(
    authorization: Annotated[str | None, Header()] = None,
    auth_provider: IAuthProvider = Depends(get_auth_provider),
) -> Actor:
    """Resolve the acting user from the "Authorization: Bearer <token>" header."""
    if not authorization:
        raise UnauthorizedError("Authorization header required")

    try:
        scheme, token = authorization.split()
        if scheme.lower() != "bearer":
            raise ValueError("Invalid scheme")
    except ValueError:
        raise UnauthorizedError("Invalid authorization header format")

    return await auth_provider.verify_token(token)


CurrentActor = Annotated[Actor, Depends(get_current_actor)]
