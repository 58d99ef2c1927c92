from datetime import datetime
from uuid import UUID, uuid4

import pytest

from projecthub.core.exceptions import ForbiddenError, NotFoundError, UnauthorizedError
from projecthub.models.enums import ProjectRole, ProjectStatus, UserRole
from projecthub.models.project import Project, ProjectMember
from projecthub.models.user import Actor
from projecthub.services.project_permissions import (
    ProjectAction,
    ensure_project_action,
    get_project_access,
    require_project_action,
    role_allows,
)


class FakeProjectRepo:
    def __init__(self, project: Project | None):
        self._project = project

    async def get(self, project_id: UUID) -> Project | None:
        if not self._project or self._project.id != project_id:
            return None
        return self._project


class FakeProjectMemberRepo:
    def __init__(self, member: ProjectMember | None):
        self._member = member

    async def get_by_project_and_user_id(self, project_id: UUID, user_id: str) -> ProjectMember | None:
        if not self._member:
            return None
        if self._member.project_id != project_id or self._member.user_id != user_id:
            return None
        return self._member


def _make_project(initiator_id: str, mentor_id: str | None = None) -> Project:
    now = datetime.utcnow()
    return Project(
        id=uuid4(),
        title="Test Project",
        initiator_id=initiator_id,
        final_mentor_id=mentor_id,
        status=ProjectStatus.MENTOR_ASSIGNED if mentor_id else ProjectStatus.OPEN,
        created_at=now,
        updated_at=now,
    )


def _make_member(project_id: UUID, user_id: str) -> ProjectMember:
    return ProjectMember(id=uuid4(), project_id=project_id, user_id=user_id, joined_at=datetime.utcnow())


@pytest.mark.asyncio
async def test_get_project_access_initiator():
    project = _make_project("owner", mentor_id="guide")

    access = await get_project_access(
        Actor(id="owner"), project.id, FakeProjectRepo(project), FakeProjectMemberRepo(None)
    )

    assert access.role == ProjectRole.INITIATOR
    assert access.project.id == project.id


@pytest.mark.asyncio
async def test_get_project_access_mentor():
    project = _make_project("owner", mentor_id="guide")

    access = await get_project_access(
        Actor(id="guide", role=UserRole.MENTOR), project.id, FakeProjectRepo(project), FakeProjectMemberRepo(None)
    )

    assert access.role == ProjectRole.MENTOR


@pytest.mark.asyncio
async def test_get_project_access_member():
    project = _make_project("owner")
    member = _make_member(project.id, "teammate")

    access = await get_project_access(
        Actor(id="teammate"), project.id, FakeProjectRepo(project), FakeProjectMemberRepo(member)
    )

    assert access.role == ProjectRole.MEMBER


@pytest.mark.asyncio
async def test_get_project_access_admin_outside_team():
    project = _make_project("owner")

    access = await get_project_access(
        Actor(id="root", role=UserRole.ADMIN), project.id, FakeProjectRepo(project), FakeProjectMemberRepo(None)
    )

    assert access.role == ProjectRole.ADMIN


@pytest.mark.asyncio
async def test_get_project_access_missing_project():
    with pytest.raises(NotFoundError):
        await get_project_access(Actor(id="owner"), uuid4(), FakeProjectRepo(None), FakeProjectMemberRepo(None))


@pytest.mark.asyncio
async def test_get_project_access_outsider():
    project = _make_project("owner")

    with pytest.raises(ForbiddenError):
        await get_project_access(
            Actor(id="stranger"), project.id, FakeProjectRepo(project), FakeProjectMemberRepo(None)
        )


@pytest.mark.asyncio
async def test_get_project_access_requires_actor():
    project = _make_project("owner")

    with pytest.raises(UnauthorizedError):
        await get_project_access(None, project.id, FakeProjectRepo(project), FakeProjectMemberRepo(None))


@pytest.mark.asyncio
async def test_member_cannot_change_milestone_status():
    project = _make_project("owner", mentor_id="guide")
    member = _make_member(project.id, "teammate")

    with pytest.raises(ForbiddenError):
        await require_project_action(
            Actor(id="teammate"),
            project.id,
            FakeProjectRepo(project),
            FakeProjectMemberRepo(member),
            ProjectAction.MILESTONE_STATUS,
        )


@pytest.mark.asyncio
async def test_member_can_manage_milestones():
    project = _make_project("owner")
    member = _make_member(project.id, "teammate")

    access = await require_project_action(
        Actor(id="teammate"),
        project.id,
        FakeProjectRepo(project),
        FakeProjectMemberRepo(member),
        ProjectAction.MILESTONE_MANAGE,
    )

    assert ensure_project_action(access, ProjectAction.TASK_MANAGE) is access


def test_role_matrix():
    assert role_allows(ProjectAction.MILESTONE_STATUS, ProjectRole.INITIATOR)
    assert role_allows(ProjectAction.MILESTONE_STATUS, ProjectRole.MENTOR)
    assert not role_allows(ProjectAction.MILESTONE_STATUS, ProjectRole.MEMBER)
    assert not role_allows(ProjectAction.MILESTONE_STATUS, ProjectRole.ADMIN)
    assert role_allows(ProjectAction.PROJECT_DELETE, ProjectRole.ADMIN)
    assert not role_allows(ProjectAction.PROJECT_DELETE, ProjectRole.MENTOR)
