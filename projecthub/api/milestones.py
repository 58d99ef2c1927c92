"""
Milestone API endpoints.

Timeline milestones, their progress and status, and the activity trail.
"""

from uuid import UUID

from fastapi import APIRouter, status

from projecthub.api.deps import CurrentActor, MilestoneSvc
from projecthub.models.milestone import (
    Milestone,
    MilestoneActivity,
    MilestoneActivityCreate,
    MilestoneCreate,
    MilestoneUpdate,
    ProgressUpdate,
    StatusUpdate,
    TimelineStats,
)

router = APIRouter(prefix="/milestones", tags=["milestones"])


@router.post("", response_model=Milestone, status_code=status.HTTP_201_CREATED)
async def create_milestone(
    milestone: MilestoneCreate,
    actor: CurrentActor,
    service: MilestoneSvc,
) -> Milestone:
    """Create a new milestone."""
    return await service.create_milestone(actor, milestone)


@router.get("/project/{project_id}", response_model=list[Milestone])
async def list_milestones_by_project(
    project_id: UUID,
    actor: CurrentActor,
    service: MilestoneSvc,
) -> list[Milestone]:
    """List milestones for a project, earliest due date first."""
    return await service.list_milestones(actor, project_id)


@router.get("/project/{project_id}/stats", response_model=TimelineStats)
async def get_timeline_stats(
    project_id: UUID,
    actor: CurrentActor,
    service: MilestoneSvc,
) -> TimelineStats:
    return await service.get_timeline_stats(actor, project_id)


@router.get("/{milestone_id}", response_model=Milestone)
async def get_milestone(
    milestone_id: UUID,
    actor: CurrentActor,
    service: MilestoneSvc,
) -> Milestone:
    """Get a milestone by ID."""
    return await service.get_milestone(actor, milestone_id)


@router.patch("/{milestone_id}", response_model=Milestone)
async def update_milestone(
    milestone_id: UUID,
    milestone: MilestoneUpdate,
    actor: CurrentActor,
    service: MilestoneSvc,
) -> Milestone:
    """Update a milestone."""
    return await service.update_milestone(actor, milestone_id, milestone)


@router.put("/{milestone_id}/progress", response_model=Milestone)
async def update_progress(
    milestone_id: UUID,
    body: ProgressUpdate,
    actor: CurrentActor,
    service: MilestoneSvc,
) -> Milestone:
    return await service.update_progress(actor, milestone_id, body.progress)


@router.put("/{milestone_id}/status", response_model=Milestone)
async def update_status(
    milestone_id: UUID,
    body: StatusUpdate,
    actor: CurrentActor,
    service: MilestoneSvc,
) -> Milestone:
    """Change status. Only the project initiator or its mentor may do this."""
    return await service.update_status(actor, milestone_id, body.status)


@router.delete("/{milestone_id}")
async def delete_milestone(
    milestone_id: UUID,
    actor: CurrentActor,
    service: MilestoneSvc,
) -> dict:
    """Delete a milestone and its activity trail."""
    await service.delete_milestone(actor, milestone_id)
    return {"success": True}


@router.get("/{milestone_id}/activities", response_model=list[MilestoneActivity])
async def list_activities(
    milestone_id: UUID,
    actor: CurrentActor,
    service: MilestoneSvc,
) -> list[MilestoneActivity]:
    return await service.list_activities(actor, milestone_id)


@router.post(
    "/{milestone_id}/activities",
    response_model=MilestoneActivity,
    status_code=status.HTTP_201_CREATED,
)
async def add_activity(
    milestone_id: UUID,
    activity: MilestoneActivityCreate,
    actor: CurrentActor,
    service: MilestoneSvc,
) -> MilestoneActivity:
    return await service.add_activity(actor, milestone_id, activity)
