"""
Shared fixtures: an in-memory database, the repositories on top of it and a
small project with one user per project role.
"""

from types import SimpleNamespace

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from projecthub.infrastructure.local.database import Base
from projecthub.infrastructure.local.milestone_repository import SqliteMilestoneRepository
from projecthub.infrastructure.local.project_member_repository import SqliteProjectMemberRepository
from projecthub.infrastructure.local.project_repository import SqliteProjectRepository
from projecthub.infrastructure.local.task_repository import SqliteTaskRepository
from projecthub.infrastructure.local.user_repository import SqliteUserRepository
from projecthub.models.enums import ProjectStatus, UserRole
from projecthub.models.project import ProjectCreate, ProjectMemberCreate
from projecthub.models.user import Actor, UserCreate
from projecthub.services.realtime_service import ChangeFeedHub


@pytest.fixture
async def session_factory():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def change_feed():
    return ChangeFeedHub()


@pytest.fixture
def repos(session_factory, change_feed):
    return SimpleNamespace(
        users=SqliteUserRepository(session_factory),
        projects=SqliteProjectRepository(session_factory, change_feed=change_feed),
        members=SqliteProjectMemberRepository(session_factory),
        milestones=SqliteMilestoneRepository(session_factory, change_feed=change_feed),
        tasks=SqliteTaskRepository(session_factory, change_feed=change_feed),
    )


@pytest.fixture
async def actors(repos):
    """One actor per project role, stored as user profiles."""
    people = {
        "initiator": UserCreate(id="alice", display_name="Alice Initiator", role=UserRole.STUDENT),
        "mentor": UserCreate(id="mira", display_name="Mira Mentor", role=UserRole.MENTOR),
        "member": UserCreate(id="sam", display_name="Sam Member", role=UserRole.STUDENT),
        "outsider": UserCreate(id="olly", display_name="Olly Outsider", role=UserRole.STUDENT),
        "admin": UserCreate(id="ada", display_name="Ada Admin", role=UserRole.ADMIN),
    }
    result = {}
    for key, user in people.items():
        await repos.users.create(user)
        result[key] = Actor(id=user.id, role=user.role, display_name=user.display_name)
    return SimpleNamespace(**result)


@pytest.fixture
async def project(repos, actors):
    """Project initiated by alice, mentored by mira, with sam on the team."""
    created = await repos.projects.create(
        actors.initiator.id,
        ProjectCreate(title="Campus Navigation App", description="Indoor maps", tags="mobile, maps"),
    )
    await repos.members.create(created.id, ProjectMemberCreate(user_id=actors.member.id))
    return await repos.projects.assign_mentor(created.id, actors.mentor.id, ProjectStatus.MENTOR_ASSIGNED)
