"""
Milestone lifecycle.

Keeps status, progress and completion timestamps consistent, enforces who
may move a milestone's status, and appends an activity entry for every
change. "Overdue" is derived whenever milestones are read and is never
written back.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Callable, Optional
from uuid import UUID

from projecthub.core.config import get_settings
from projecthub.core.exceptions import NotFoundError, PortalError, ValidationError
from projecthub.core.logger import setup_logger
from projecthub.interfaces.milestone_repository import IMilestoneRepository
from projecthub.interfaces.project_member_repository import IProjectMemberRepository
from projecthub.interfaces.project_repository import IProjectRepository
from projecthub.models.enums import (
    PERSISTED_MILESTONE_STATUSES,
    MilestoneActivityType,
    MilestoneStatus,
)
from projecthub.models.milestone import (
    Milestone,
    MilestoneActivity,
    MilestoneActivityCreate,
    MilestoneCreate,
    MilestoneUpdate,
    RecentCompletion,
    TimelineStats,
    UpcomingDeadline,
)
from projecthub.models.user import Actor
from projecthub.services.project_permissions import (
    ProjectAccess,
    ProjectAction,
    ensure_actor,
    ensure_project_action,
    require_project_action,
)
from projecthub.utils.datetime_utils import days_until, now_utc

logger = setup_logger(__name__)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def apply_derived_status(milestones: list[Milestone], now: Optional[datetime] = None) -> list[Milestone]:
    """Derive overdue for a batch against a single clock reading."""
    now = now or now_utc()
    return [milestone.with_derived_status(now) for milestone in milestones]


def status_side_effects(new_status: MilestoneStatus, now: datetime) -> dict[str, Any]:
    """
    Columns that change together with the status.

    Completing stamps completed_at and forces progress to 100. Any other
    status clears completed_at.
    """
    if new_status == MilestoneStatus.COMPLETED:
        return {"status": new_status, "completed_at": now, "progress": 100}
    return {"status": new_status, "completed_at": None}


class MilestoneService:
    """Milestone state machine. Every operation takes the acting user explicitly."""

    def __init__(
        self,
        milestone_repo: IMilestoneRepository,
        project_repo: IProjectRepository,
        member_repo: IProjectMemberRepository,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.milestone_repo = milestone_repo
        self.project_repo = project_repo
        self.member_repo = member_repo
        self._clock = clock

    async def _access(self, actor: Actor | None, project_id: UUID, action: ProjectAction) -> ProjectAccess:
        return await require_project_action(actor, project_id, self.project_repo, self.member_repo, action)

    async def _access_for_milestone(
        self, actor: Actor | None, milestone_id: UUID, action: ProjectAction
    ) -> ProjectAccess:
        ensure_actor(actor)
        project_id = await self.milestone_repo.get_project_id(milestone_id)
        if not project_id:
            raise NotFoundError(f"Milestone {milestone_id} not found")
        return await self._access(actor, project_id, action)

    async def _get_or_404(self, milestone_id: UUID) -> Milestone:
        milestone = await self.milestone_repo.get(milestone_id)
        if not milestone:
            raise NotFoundError(f"Milestone {milestone_id} not found")
        return milestone

    async def _log_activity(
        self,
        actor: Actor,
        milestone_id: UUID,
        activity_type: MilestoneActivityType,
        description: str,
        metadata: dict[str, Any],
    ) -> None:
        # The primary write is already committed; a lost audit entry is logged, not raised.
        try:
            await self.milestone_repo.add_activity(
                milestone_id,
                actor.id,
                MilestoneActivityCreate(
                    activity_type=activity_type,
                    description=description,
                    metadata=metadata,
                ),
            )
        except PortalError as exc:
            logger.warning(
                "Activity %s for milestone %s was not recorded: %s",
                activity_type.value,
                milestone_id,
                exc.message,
            )

    # ===========================================
    # Mutations
    # ===========================================

    async def create_milestone(self, actor: Actor | None, data: MilestoneCreate) -> Milestone:
        actor = ensure_actor(actor)
        await self._access(actor, data.project_id, ProjectAction.MILESTONE_MANAGE)

        milestone = await self.milestone_repo.create(actor.id, data)
        logger.info("Milestone %s created in project %s by %s", milestone.id, data.project_id, actor.id)
        await self._log_activity(
            actor,
            milestone.id,
            MilestoneActivityType.CREATED,
            f'Created milestone "{milestone.title}"',
            {"due_date": milestone.due_date.isoformat()},
        )
        return milestone.with_derived_status(self._clock())

    async def update_milestone(
        self, actor: Actor | None, milestone_id: UUID, update: MilestoneUpdate
    ) -> Milestone:
        changes = update.model_dump(exclude_unset=True)
        new_status = changes.get("status")
        action = ProjectAction.MILESTONE_STATUS if new_status is not None else ProjectAction.MILESTONE_MANAGE
        access = await self._access_for_milestone(actor, milestone_id, action)

        if "status" in changes and new_status not in PERSISTED_MILESTONE_STATUSES:
            raise ValidationError(f"Status '{new_status}' cannot be set directly")
        for required in ("title", "due_date"):
            if required in changes and changes[required] is None:
                raise ValidationError(f"{required} cannot be cleared")

        current = await self._get_or_404(milestone_id)
        status_changed = new_status is not None and new_status != current.status
        if status_changed:
            changes.update(status_side_effects(new_status, self._clock()))

        milestone = await self.milestone_repo.update(milestone_id, changes)
        logger.info("Milestone %s updated by %s: %s", milestone_id, access.actor.id, sorted(changes))
        if status_changed:
            await self._log_status_change(access.actor, milestone_id, current.status, new_status)
        return milestone.with_derived_status(self._clock())

    async def update_progress(self, actor: Actor | None, milestone_id: UUID, progress: int) -> Milestone:
        access = await self._access_for_milestone(actor, milestone_id, ProjectAction.MILESTONE_MANAGE)
        if isinstance(progress, bool) or not isinstance(progress, int) or not 0 <= progress <= 100:
            raise ValidationError("Progress must be an integer between 0 and 100")

        # Progress alone never moves the status; completing is a separate status change.
        milestone = await self.milestone_repo.update(milestone_id, {"progress": progress})
        logger.info("Milestone %s progress set to %d by %s", milestone_id, progress, access.actor.id)

        if progress == 100:
            activity_type = MilestoneActivityType.COMPLETION
            description = f'Completed milestone "{milestone.title}"'
        else:
            activity_type = MilestoneActivityType.PROGRESS_UPDATE
            description = f"Updated progress to {progress}%"
        await self._log_activity(access.actor, milestone_id, activity_type, description, {"progress": progress})
        return milestone.with_derived_status(self._clock())

    async def update_status(
        self, actor: Actor | None, milestone_id: UUID, new_status: MilestoneStatus
    ) -> Milestone:
        actor = ensure_actor(actor)
        current = await self._get_or_404(milestone_id)
        access = await self._access(actor, current.project_id, ProjectAction.PROJECT_READ)
        ensure_project_action(access, ProjectAction.MILESTONE_STATUS)

        try:
            new_status = MilestoneStatus(new_status)
        except ValueError:
            raise ValidationError(f"Unknown milestone status '{new_status}'")
        if new_status not in PERSISTED_MILESTONE_STATUSES:
            raise ValidationError("Overdue is derived from the due date and cannot be set")

        milestone = await self.milestone_repo.update(
            milestone_id, status_side_effects(new_status, self._clock())
        )
        logger.info(
            "Milestone %s status %s -> %s by %s",
            milestone_id,
            current.status.value,
            new_status.value,
            actor.id,
        )
        await self._log_status_change(actor, milestone_id, current.status, new_status)
        return milestone.with_derived_status(self._clock())

    async def _log_status_change(
        self,
        actor: Actor,
        milestone_id: UUID,
        old_status: MilestoneStatus,
        new_status: MilestoneStatus,
    ) -> None:
        await self._log_activity(
            actor,
            milestone_id,
            MilestoneActivityType.STATUS_CHANGE,
            f'Changed status to "{new_status.label}"',
            {"old_status": old_status.value, "new_status": new_status.value},
        )

    async def delete_milestone(self, actor: Actor | None, milestone_id: UUID) -> None:
        access = await self._access_for_milestone(actor, milestone_id, ProjectAction.MILESTONE_MANAGE)
        deleted = await self.milestone_repo.delete(milestone_id)
        if not deleted:
            raise NotFoundError(f"Milestone {milestone_id} not found")
        logger.info("Milestone %s deleted by %s", milestone_id, access.actor.id)

    async def add_activity(
        self, actor: Actor | None, milestone_id: UUID, activity: MilestoneActivityCreate
    ) -> MilestoneActivity:
        access = await self._access_for_milestone(actor, milestone_id, ProjectAction.MILESTONE_MANAGE)
        return await self.milestone_repo.add_activity(milestone_id, access.actor.id, activity)

    # ===========================================
    # Reads
    # ===========================================

    async def get_milestone(self, actor: Actor | None, milestone_id: UUID) -> Milestone:
        await self._access_for_milestone(actor, milestone_id, ProjectAction.PROJECT_READ)
        milestone = await self._get_or_404(milestone_id)
        return milestone.with_derived_status(self._clock())

    async def list_milestones(self, actor: Actor | None, project_id: UUID) -> list[Milestone]:
        await self._access(actor, project_id, ProjectAction.PROJECT_READ)
        milestones = await self.milestone_repo.list_by_project(project_id)
        return apply_derived_status(milestones, self._clock())

    async def list_activities(self, actor: Actor | None, milestone_id: UUID) -> list[MilestoneActivity]:
        await self._access_for_milestone(actor, milestone_id, ProjectAction.PROJECT_READ)
        return await self.milestone_repo.list_activities(milestone_id)

    async def get_timeline_stats(self, actor: Actor | None, project_id: UUID) -> TimelineStats:
        await self._access(actor, project_id, ProjectAction.PROJECT_READ)
        milestones = await self.milestone_repo.list_by_project(project_id)
        return compute_timeline_stats(milestones, self._clock())


def compute_timeline_stats(milestones: list[Milestone], now: datetime) -> TimelineStats:
    """
    Aggregate persisted milestones into timeline stats.

    Upcoming deadlines are the not-completed milestones due within the
    configured window, counting whole days rounded up. Recent completions
    are the latest completed_at values, newest first.
    """
    settings = get_settings()
    if not milestones:
        return TimelineStats()

    completed = [m for m in milestones if m.status == MilestoneStatus.COMPLETED]
    in_progress = [m for m in milestones if m.status == MilestoneStatus.IN_PROGRESS]
    overdue = [m for m in milestones if m.is_overdue(now)]

    upcoming = []
    for milestone in milestones:
        if milestone.status == MilestoneStatus.COMPLETED:
            continue
        days = days_until(milestone.due_date, now)
        if 0 <= days <= settings.UPCOMING_DEADLINE_DAYS:
            upcoming.append(
                UpcomingDeadline(
                    id=milestone.id,
                    title=milestone.title,
                    due_date=milestone.due_date,
                    days_until_due=days,
                )
            )
    upcoming.sort(key=lambda item: item.days_until_due)

    recent = sorted(
        (m for m in completed if m.completed_at),
        key=lambda m: m.completed_at,
        reverse=True,
    )[: settings.RECENT_COMPLETIONS_LIMIT]

    return TimelineStats(
        total_milestones=len(milestones),
        completed_milestones=len(completed),
        in_progress_milestones=len(in_progress),
        overdue_milestones=len(overdue),
        overall_progress=round_half_up(sum(m.progress for m in milestones) / len(milestones)),
        upcoming_deadlines=upcoming,
        recent_completions=[
            RecentCompletion(id=m.id, title=m.title, completed_at=m.completed_at) for m in recent
        ],
    )
