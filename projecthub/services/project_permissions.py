from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from projecthub.core.exceptions import ForbiddenError, NotFoundError, UnauthorizedError
from projecthub.interfaces.project_member_repository import IProjectMemberRepository
from projecthub.interfaces.project_repository import IProjectRepository
from projecthub.models.enums import ProjectRole
from projecthub.models.project import Project
from projecthub.models.user import Actor


class ProjectAction(str, Enum):
    PROJECT_READ = "project.read"
    PROJECT_DELETE = "project.delete"
    MEMBER_MANAGE = "member.manage"
    MENTOR_ASSIGN = "mentor.assign"
    MILESTONE_MANAGE = "milestone.manage"
    MILESTONE_STATUS = "milestone.status"
    TASK_MANAGE = "task.manage"


ALL_PROJECT_ROLES = {ProjectRole.INITIATOR, ProjectRole.MENTOR, ProjectRole.MEMBER, ProjectRole.ADMIN}
OWNER_AND_MENTOR = {ProjectRole.INITIATOR, ProjectRole.MENTOR}

PROJECT_ROLE_MATRIX: dict[ProjectAction, set[ProjectRole]] = {
    ProjectAction.PROJECT_READ: ALL_PROJECT_ROLES,
    ProjectAction.PROJECT_DELETE: {ProjectRole.INITIATOR, ProjectRole.ADMIN},
    ProjectAction.MEMBER_MANAGE: {ProjectRole.INITIATOR, ProjectRole.ADMIN},
    ProjectAction.MENTOR_ASSIGN: {ProjectRole.INITIATOR, ProjectRole.ADMIN},
    ProjectAction.MILESTONE_MANAGE: ALL_PROJECT_ROLES,
    # Only the initiator or the assigned final mentor may move a milestone's status.
    ProjectAction.MILESTONE_STATUS: OWNER_AND_MENTOR,
    ProjectAction.TASK_MANAGE: ALL_PROJECT_ROLES,
}


@dataclass(frozen=True)
class ProjectAccess:
    project: Project
    role: ProjectRole
    actor: Actor


def roles_for_action(action: ProjectAction) -> set[ProjectRole]:
    return set(PROJECT_ROLE_MATRIX.get(action, set()))


def role_allows(action: ProjectAction, role: ProjectRole) -> bool:
    return role in roles_for_action(action)


def ensure_actor(actor: Actor | None) -> Actor:
    if actor is None:
        raise UnauthorizedError("Unauthorized")
    return actor


def ensure_project_action(access: ProjectAccess, action: ProjectAction) -> ProjectAccess:
    if not role_allows(action, access.role):
        raise ForbiddenError("You don't have permission to perform this action")
    return access


def resolve_project_role(project: Project, actor: Actor, is_member: bool) -> ProjectRole | None:
    if actor.id == project.initiator_id:
        return ProjectRole.INITIATOR
    if project.final_mentor_id and actor.id == project.final_mentor_id:
        return ProjectRole.MENTOR
    if is_member:
        return ProjectRole.MEMBER
    if actor.is_admin:
        return ProjectRole.ADMIN
    return None


async def get_project_access(
    actor: Actor | None,
    project_id: UUID,
    project_repo: IProjectRepository,
    member_repo: IProjectMemberRepository,
) -> ProjectAccess:
    actor = ensure_actor(actor)
    project = await project_repo.get(project_id)
    if not project:
        raise NotFoundError(f"Project {project_id} not found")

    is_member = False
    if actor.id not in (project.initiator_id, project.final_mentor_id):
        member = await member_repo.get_by_project_and_user_id(project_id, actor.id)
        is_member = member is not None

    role = resolve_project_role(project, actor, is_member)
    if role is None:
        raise ForbiddenError("User is not a member of this project")
    return ProjectAccess(project=project, role=role, actor=actor)


async def require_project_action(
    actor: Actor | None,
    project_id: UUID,
    project_repo: IProjectRepository,
    member_repo: IProjectMemberRepository,
    action: ProjectAction,
) -> ProjectAccess:
    access = await get_project_access(actor, project_id, project_repo, member_repo)
    return ensure_project_action(access, action)
