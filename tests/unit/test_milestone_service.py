"""
Unit tests for the milestone state machine.
"""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from projecthub.core.exceptions import (
    DependencyFailureError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from projecthub.models.enums import MilestoneActivityType, MilestoneStatus
from projecthub.models.milestone import Milestone, MilestoneCreate, MilestoneUpdate
from projecthub.services.milestone_service import MilestoneService, compute_timeline_stats
from projecthub.utils.datetime_utils import UTC, now_utc


@pytest.fixture
def service(repos):
    return MilestoneService(repos.milestones, repos.projects, repos.members)


def _milestone_data(project, title="Prototype", days=7, **kwargs):
    return MilestoneCreate(
        project_id=project.id,
        title=title,
        due_date=now_utc() + timedelta(days=days),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_create_milestone_defaults(service, project, actors):
    first = await service.create_milestone(actors.member, _milestone_data(project, "Design"))
    second = await service.create_milestone(
        actors.member, _milestone_data(project, "Build", assigned_to="unassigned")
    )

    assert first.status == MilestoneStatus.PENDING
    assert first.progress == 0
    assert first.position == 1
    assert first.created_by == actors.member.id
    assert second.position == 2
    assert second.assigned_to is None
    assert second.assignee is None


@pytest.mark.asyncio
async def test_create_milestone_resolves_assignee(service, project, actors):
    milestone = await service.create_milestone(
        actors.initiator, _milestone_data(project, assigned_to=actors.member.id)
    )

    assert milestone.assignee is not None
    assert milestone.assignee.display_name == "Sam Member"


@pytest.mark.asyncio
async def test_create_milestone_logs_created_activity(service, project, actors):
    milestone = await service.create_milestone(actors.initiator, _milestone_data(project, "Kickoff"))

    activities = await service.list_activities(actors.initiator, milestone.id)

    assert [a.activity_type for a in activities] == [MilestoneActivityType.CREATED]
    assert activities[0].description == 'Created milestone "Kickoff"'
    assert activities[0].user.display_name == "Alice Initiator"


@pytest.mark.asyncio
async def test_create_milestone_requires_actor(service, project):
    with pytest.raises(UnauthorizedError):
        await service.create_milestone(None, _milestone_data(project))


@pytest.mark.asyncio
async def test_create_milestone_rejects_outsider(service, project, actors):
    with pytest.raises(ForbiddenError):
        await service.create_milestone(actors.outsider, _milestone_data(project))


@pytest.mark.asyncio
async def test_overdue_is_derived_not_persisted(service, repos, project, actors):
    milestone = await service.create_milestone(actors.initiator, _milestone_data(project, days=-1))

    listed = await service.list_milestones(actors.member, project.id)
    stored = await repos.milestones.get(milestone.id)

    assert listed[0].status == MilestoneStatus.OVERDUE
    assert stored.status == MilestoneStatus.PENDING

    await service.update_milestone(
        actors.initiator,
        milestone.id,
        MilestoneUpdate(due_date=now_utc() + timedelta(days=2)),
    )
    listed = await service.list_milestones(actors.member, project.id)

    assert listed[0].status == MilestoneStatus.PENDING


@pytest.mark.asyncio
async def test_completing_overdue_milestone(service, project, actors):
    """A completed milestone is never overdue, even with a past due date."""
    milestone = await service.create_milestone(actors.initiator, _milestone_data(project, days=-1))
    assert (await service.list_milestones(actors.initiator, project.id))[0].status == MilestoneStatus.OVERDUE

    await service.update_status(actors.initiator, milestone.id, MilestoneStatus.COMPLETED)
    refetched = await service.get_milestone(actors.initiator, milestone.id)

    assert refetched.status == MilestoneStatus.COMPLETED
    assert refetched.progress == 100
    assert refetched.completed_at is not None
    assert refetched.due_date < now_utc()


@pytest.mark.asyncio
async def test_mentor_can_complete(service, project, actors):
    milestone = await service.create_milestone(actors.member, _milestone_data(project))

    updated = await service.update_status(actors.mentor, milestone.id, MilestoneStatus.COMPLETED)

    assert updated.progress == 100
    assert updated.completed_at is not None


@pytest.mark.asyncio
@pytest.mark.parametrize("who", ["member", "outsider", "admin"])
@pytest.mark.parametrize("new_status", list(MilestoneStatus))
async def test_status_change_limited_to_initiator_and_mentor(service, project, actors, who, new_status):
    milestone = await service.create_milestone(actors.initiator, _milestone_data(project))

    with pytest.raises(ForbiddenError):
        await service.update_status(getattr(actors, who), milestone.id, new_status)

    unchanged = await service.get_milestone(actors.initiator, milestone.id)
    assert unchanged.status == MilestoneStatus.PENDING


@pytest.mark.asyncio
async def test_status_cannot_be_set_to_overdue(service, project, actors):
    milestone = await service.create_milestone(actors.initiator, _milestone_data(project))

    with pytest.raises(ValidationError):
        await service.update_status(actors.initiator, milestone.id, MilestoneStatus.OVERDUE)
    with pytest.raises(ValidationError):
        await service.update_milestone(
            actors.initiator, milestone.id, MilestoneUpdate(status=MilestoneStatus.OVERDUE)
        )


@pytest.mark.asyncio
async def test_status_change_activity_and_reopen(service, project, actors):
    milestone = await service.create_milestone(actors.initiator, _milestone_data(project))

    await service.update_status(actors.initiator, milestone.id, MilestoneStatus.COMPLETED)
    reopened = await service.update_status(actors.mentor, milestone.id, MilestoneStatus.PENDING)

    assert reopened.status == MilestoneStatus.PENDING
    assert reopened.completed_at is None

    activities = await service.list_activities(actors.member, milestone.id)
    changes = [a for a in activities if a.activity_type == MilestoneActivityType.STATUS_CHANGE]
    descriptions = sorted(a.description for a in changes)
    assert descriptions == ['Changed status to "Completed"', 'Changed status to "Pending"']
    completed_change = next(a for a in changes if a.metadata["new_status"] == "completed")
    assert completed_change.metadata["old_status"] == "pending"


@pytest.mark.asyncio
async def test_update_milestone_status_applies_completion(service, project, actors):
    milestone = await service.create_milestone(actors.initiator, _milestone_data(project))

    updated = await service.update_milestone(
        actors.mentor, milestone.id, MilestoneUpdate(status=MilestoneStatus.COMPLETED, title="Ship it")
    )

    assert updated.title == "Ship it"
    assert updated.progress == 100
    assert updated.completed_at is not None


@pytest.mark.asyncio
async def test_update_milestone_resending_status_keeps_completed_at(repos, project, actors):
    moments = [datetime(2025, 4, 1, 9, 0, tzinfo=UTC)]
    service = MilestoneService(repos.milestones, repos.projects, repos.members, clock=lambda: moments[-1])
    milestone = await service.create_milestone(actors.initiator, _milestone_data(project))
    completed = await service.update_milestone(
        actors.mentor, milestone.id, MilestoneUpdate(status=MilestoneStatus.COMPLETED)
    )

    moments.append(datetime(2025, 4, 3, 9, 0, tzinfo=UTC))
    resent = await service.update_milestone(
        actors.initiator, milestone.id, MilestoneUpdate(status=MilestoneStatus.COMPLETED, title="Renamed")
    )

    assert resent.title == "Renamed"
    assert resent.completed_at == completed.completed_at
    activities = await service.list_activities(actors.member, milestone.id)
    assert [a.activity_type for a in activities].count(MilestoneActivityType.STATUS_CHANGE) == 1


@pytest.mark.asyncio
async def test_update_status_rejects_unknown_value(service, project, actors):
    milestone = await service.create_milestone(actors.initiator, _milestone_data(project))

    with pytest.raises(ValidationError):
        await service.update_status(actors.mentor, milestone.id, "archived")


@pytest.mark.asyncio
async def test_update_milestone_status_requires_owner_or_mentor(service, project, actors):
    milestone = await service.create_milestone(actors.initiator, _milestone_data(project))

    with pytest.raises(ForbiddenError):
        await service.update_milestone(
            actors.member, milestone.id, MilestoneUpdate(status=MilestoneStatus.IN_PROGRESS)
        )


@pytest.mark.asyncio
async def test_update_milestone_unassigns(service, project, actors):
    milestone = await service.create_milestone(
        actors.initiator, _milestone_data(project, assigned_to=actors.member.id)
    )

    updated = await service.update_milestone(
        actors.member, milestone.id, MilestoneUpdate(assigned_to="unassigned")
    )

    assert updated.assigned_to is None
    assert updated.assignee is None


@pytest.mark.asyncio
async def test_update_progress_is_idempotent(service, project, actors):
    milestone = await service.create_milestone(actors.initiator, _milestone_data(project))

    first = await service.update_progress(actors.member, milestone.id, 50)
    second = await service.update_progress(actors.member, milestone.id, 50)

    assert first.progress == second.progress == 50
    assert second.status == MilestoneStatus.PENDING
    activities = await service.list_activities(actors.member, milestone.id)
    progress_entries = [a for a in activities if a.activity_type == MilestoneActivityType.PROGRESS_UPDATE]
    assert len(progress_entries) == 2
    assert all(a.metadata == {"progress": 50} for a in progress_entries)
    assert progress_entries[0].description == "Updated progress to 50%"


@pytest.mark.asyncio
async def test_full_progress_logs_completion_without_status_change(service, project, actors):
    milestone = await service.create_milestone(actors.initiator, _milestone_data(project, "Report"))

    updated = await service.update_progress(actors.member, milestone.id, 100)

    assert updated.status == MilestoneStatus.PENDING
    assert updated.completed_at is None
    activities = await service.list_activities(actors.member, milestone.id)
    completion = [a for a in activities if a.activity_type == MilestoneActivityType.COMPLETION]
    assert len(completion) == 1
    assert completion[0].description == 'Completed milestone "Report"'


@pytest.mark.asyncio
@pytest.mark.parametrize("progress", [-1, 101, 250])
async def test_update_progress_out_of_range(service, project, actors, progress):
    milestone = await service.create_milestone(actors.initiator, _milestone_data(project))

    with pytest.raises(ValidationError):
        await service.update_progress(actors.member, milestone.id, progress)


@pytest.mark.asyncio
async def test_update_progress_missing_milestone(service, project, actors):
    with pytest.raises(NotFoundError):
        await service.update_progress(actors.member, uuid4(), 10)


@pytest.mark.asyncio
async def test_activity_failure_does_not_undo_mutation(service, repos, project, actors):
    milestone = await service.create_milestone(actors.initiator, _milestone_data(project))
    repos.milestones.add_activity = AsyncMock(side_effect=DependencyFailureError("store down"))

    updated = await service.update_progress(actors.member, milestone.id, 30)

    assert updated.progress == 30
    assert (await repos.milestones.get(milestone.id)).progress == 30


@pytest.mark.asyncio
async def test_delete_milestone(service, project, actors):
    milestone = await service.create_milestone(actors.initiator, _milestone_data(project))

    await service.delete_milestone(actors.member, milestone.id)

    assert await service.list_milestones(actors.member, project.id) == []
    with pytest.raises(NotFoundError):
        await service.delete_milestone(actors.member, milestone.id)
    with pytest.raises(NotFoundError):
        await service.list_activities(actors.member, milestone.id)


@pytest.mark.asyncio
async def test_list_milestones_ordered_by_due_date(service, project, actors):
    await service.create_milestone(actors.initiator, _milestone_data(project, "Later", days=20))
    await service.create_milestone(actors.initiator, _milestone_data(project, "Sooner", days=2))

    listed = await service.list_milestones(actors.mentor, project.id)

    assert [m.title for m in listed] == ["Sooner", "Later"]


@pytest.mark.asyncio
async def test_timeline_stats(service, project, actors):
    soon = await service.create_milestone(actors.initiator, _milestone_data(project, "Soon", days=3))
    later = await service.create_milestone(actors.initiator, _milestone_data(project, "Later", days=20))
    await service.create_milestone(actors.initiator, _milestone_data(project, "Late", days=-1))
    done = await service.create_milestone(actors.initiator, _milestone_data(project, "Done", days=1))

    await service.update_progress(actors.initiator, soon.id, 20)
    await service.update_status(actors.initiator, later.id, MilestoneStatus.IN_PROGRESS)
    await service.update_progress(actors.initiator, later.id, 50)
    await service.update_status(actors.initiator, done.id, MilestoneStatus.COMPLETED)

    stats = await service.get_timeline_stats(actors.member, project.id)

    assert stats.total_milestones == 4
    assert stats.completed_milestones == 1
    assert stats.in_progress_milestones == 1
    assert stats.overdue_milestones == 1
    # (20 + 50 + 0 + 100) / 4 = 42.5
    assert stats.overall_progress == 43
    assert [d.title for d in stats.upcoming_deadlines] == ["Soon"]
    assert stats.upcoming_deadlines[0].days_until_due == 3
    assert [c.title for c in stats.recent_completions] == ["Done"]


@pytest.mark.asyncio
async def test_timeline_stats_empty_project(service, project, actors):
    stats = await service.get_timeline_stats(actors.initiator, project.id)

    assert stats.total_milestones == 0
    assert stats.overall_progress == 0
    assert stats.upcoming_deadlines == []


def _milestone(title, due_date, status=MilestoneStatus.PENDING, progress=0, completed_at=None):
    created = datetime(2025, 1, 1, tzinfo=UTC)
    return Milestone(
        id=uuid4(),
        project_id=uuid4(),
        title=title,
        due_date=due_date,
        status=status,
        progress=progress,
        created_by="alice",
        completed_at=completed_at,
        created_at=created,
        updated_at=created,
    )


def test_compute_timeline_stats_windows_and_recent_limit():
    now = datetime(2025, 3, 10, 12, 0, tzinfo=UTC)
    milestones = [
        _milestone("Edge", now + timedelta(days=14)),
        _milestone("Outside", now + timedelta(days=14, hours=1)),
        _milestone("Tomorrowish", now + timedelta(hours=2)),
        _milestone("Just missed", now - timedelta(hours=2)),
        _milestone("Yesterday", now - timedelta(days=1, hours=1)),
    ] + [
        _milestone(
            f"Done {i}",
            now - timedelta(days=5),
            status=MilestoneStatus.COMPLETED,
            progress=100,
            completed_at=now - timedelta(days=i),
        )
        for i in range(1, 5)
    ]

    stats = compute_timeline_stats(milestones, now)

    assert [(d.title, d.days_until_due) for d in stats.upcoming_deadlines] == [
        ("Just missed", 0),
        ("Tomorrowish", 1),
        ("Edge", 14),
    ]
    assert [c.title for c in stats.recent_completions] == ["Done 1", "Done 2", "Done 3"]
    assert stats.overdue_milestones == 2
    assert stats.completed_milestones == 4
