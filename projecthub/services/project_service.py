from __future__ import annotations

from uuid import UUID

from projecthub.core.exceptions import NotFoundError, ValidationError
from projecthub.core.logger import setup_logger
from projecthub.interfaces.project_member_repository import IProjectMemberRepository
from projecthub.interfaces.project_repository import IProjectRepository
from projecthub.models.enums import ProjectStatus
from projecthub.models.project import Project, ProjectCreate, ProjectMember, ProjectMemberCreate
from projecthub.models.user import Actor
from projecthub.services.project_permissions import (
    ProjectAction,
    ensure_actor,
    require_project_action,
)

logger = setup_logger(__name__)


class ProjectService:
    """Project aggregate: creation, team membership, mentor assignment and deletion."""

    def __init__(self, project_repo: IProjectRepository, member_repo: IProjectMemberRepository):
        self.project_repo = project_repo
        self.member_repo = member_repo

    async def create_project(self, actor: Actor | None, data: ProjectCreate) -> Project:
        actor = ensure_actor(actor)
        project = await self.project_repo.create(actor.id, data)
        logger.info("Project %s created by %s", project.id, actor.id)
        return project

    async def get_project(self, actor: Actor | None, project_id: UUID) -> Project:
        access = await require_project_action(
            actor, project_id, self.project_repo, self.member_repo, ProjectAction.PROJECT_READ
        )
        return access.project

    async def list_members(self, actor: Actor | None, project_id: UUID) -> list[ProjectMember]:
        await require_project_action(
            actor, project_id, self.project_repo, self.member_repo, ProjectAction.PROJECT_READ
        )
        return await self.member_repo.list_by_project(project_id)

    async def add_member(
        self, actor: Actor | None, project_id: UUID, member: ProjectMemberCreate
    ) -> ProjectMember:
        access = await require_project_action(
            actor, project_id, self.project_repo, self.member_repo, ProjectAction.MEMBER_MANAGE
        )
        if member.user_id in (access.project.initiator_id, access.project.final_mentor_id):
            raise ValidationError("User already belongs to this project")
        if await self.member_repo.get_by_project_and_user_id(project_id, member.user_id):
            raise ValidationError("User is already a member of this project")

        created = await self.member_repo.create(project_id, member)
        logger.info("User %s joined project %s", member.user_id, project_id)
        return created

    async def assign_mentor(self, actor: Actor | None, project_id: UUID, mentor_id: str) -> Project:
        access = await require_project_action(
            actor, project_id, self.project_repo, self.member_repo, ProjectAction.MENTOR_ASSIGN
        )
        if mentor_id == access.project.initiator_id:
            raise ValidationError("The initiator cannot mentor their own project")

        project = await self.project_repo.assign_mentor(project_id, mentor_id, ProjectStatus.MENTOR_ASSIGNED)
        logger.info("Mentor %s assigned to project %s", mentor_id, project_id)
        return project

    async def delete_project(self, actor: Actor | None, project_id: UUID) -> None:
        access = await require_project_action(
            actor, project_id, self.project_repo, self.member_repo, ProjectAction.PROJECT_DELETE
        )
        if not await self.project_repo.delete(project_id):
            raise NotFoundError(f"Project {project_id} not found")
        logger.info("Project %s deleted by %s", project_id, access.actor.id)
