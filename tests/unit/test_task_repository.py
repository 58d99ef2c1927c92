"""
Unit tests for Task repository.
"""

from unittest.mock import AsyncMock

import pytest

from projecthub.core.exceptions import DependencyFailureError, NotFoundError
from projecthub.infrastructure.local.task_repository import SqliteTaskRepository
from projecthub.models.enums import ChangeEventKind, FeedTable, TaskStatus
from projecthub.models.task import TaskCreate


@pytest.mark.asyncio
async def test_move_publishes_shifted_rows(repos, project, actors, change_feed):
    moving = await repos.tasks.create(actors.member.id, TaskCreate(project_id=project.id, title="moving"))
    sibling = await repos.tasks.create(
        actors.member.id, TaskCreate(project_id=project.id, title="sibling", status=TaskStatus.REVIEW)
    )
    subscription = await change_feed.subscribe(FeedTable.TASKS, project.id)

    await repos.tasks.move(moving.id, TaskStatus.REVIEW, 1)

    events = [subscription.queue.get_nowait() for _ in range(subscription.queue.qsize())]
    assert [(e.event_kind, e.row_id) for e in events] == [
        (ChangeEventKind.UPDATE, sibling.id),
        (ChangeEventKind.UPDATE, moving.id),
    ]
    assert events[0].old_row["position"] == 1
    assert events[0].new_row["position"] == 2


@pytest.mark.asyncio
async def test_move_missing_task_changes_nothing(repos, project, actors):
    task = await repos.tasks.create(
        actors.member.id, TaskCreate(project_id=project.id, title="stay", status=TaskStatus.REVIEW)
    )

    with pytest.raises(NotFoundError):
        await repos.tasks.move(project.id, TaskStatus.REVIEW, 0)

    assert (await repos.tasks.get(task.id)).position == 1


@pytest.mark.asyncio
async def test_move_failure_rolls_back_shift(session_factory, repos, project, actors):
    """The sibling shift is not kept when the moved row cannot be written."""
    moving = await repos.tasks.create(actors.member.id, TaskCreate(project_id=project.id, title="moving"))
    sibling = await repos.tasks.create(
        actors.member.id, TaskCreate(project_id=project.id, title="sibling", status=TaskStatus.REVIEW)
    )
    feed = AsyncMock()
    repo = SqliteTaskRepository(session_factory, change_feed=feed)

    with pytest.raises(DependencyFailureError):
        # SQLite cannot bind an arbitrary object, so the commit fails after the shift was flushed
        await repo.move(moving.id, TaskStatus.REVIEW, 0, {"description": object()})

    assert (await repos.tasks.get(sibling.id)).position == 1
    assert (await repos.tasks.get(moving.id)).status == TaskStatus.TODO
    feed.publish.assert_not_called()


@pytest.mark.asyncio
async def test_list_orders_by_position(repos, project, actors):
    for title in ("a", "b", "c"):
        await repos.tasks.create(actors.member.id, TaskCreate(project_id=project.id, title=title))

    tasks = await repos.tasks.list_by_project(project.id)

    assert [t.title for t in tasks] == ["a", "b", "c"]
    assert [t.position for t in tasks] == [1, 2, 3]
