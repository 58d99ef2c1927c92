"""
Project API endpoints.
"""

from uuid import UUID

from fastapi import APIRouter, status

from projecthub.api.deps import CurrentActor, ProjectSvc
from projecthub.models.project import (
    MentorAssignment,
    Project,
    ProjectCreate,
    ProjectMember,
    ProjectMemberCreate,
)

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("", response_model=Project, status_code=status.HTTP_201_CREATED)
async def create_project(project: ProjectCreate, actor: CurrentActor, service: ProjectSvc) -> Project:
    """Propose a new project. The caller becomes its initiator."""
    return await service.create_project(actor, project)


@router.get("/{project_id}", response_model=Project)
async def get_project(project_id: UUID, actor: CurrentActor, service: ProjectSvc) -> Project:
    return await service.get_project(actor, project_id)


@router.delete("/{project_id}")
async def delete_project(project_id: UUID, actor: CurrentActor, service: ProjectSvc) -> dict:
    """Delete a project with its milestones, tasks and members."""
    await service.delete_project(actor, project_id)
    return {"success": True}


@router.get("/{project_id}/members", response_model=list[ProjectMember])
async def list_members(project_id: UUID, actor: CurrentActor, service: ProjectSvc) -> list[ProjectMember]:
    return await service.list_members(actor, project_id)


@router.post(
    "/{project_id}/members",
    response_model=ProjectMember,
    status_code=status.HTTP_201_CREATED,
)
async def add_member(
    project_id: UUID,
    member: ProjectMemberCreate,
    actor: CurrentActor,
    service: ProjectSvc,
) -> ProjectMember:
    return await service.add_member(actor, project_id, member)


@router.put("/{project_id}/mentor", response_model=Project)
async def assign_mentor(
    project_id: UUID,
    assignment: MentorAssignment,
    actor: CurrentActor,
    service: ProjectSvc,
) -> Project:
    return await service.assign_mentor(actor, project_id, assignment.mentor_id)
