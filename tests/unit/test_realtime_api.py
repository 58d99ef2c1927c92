import json
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from projecthub.api.realtime import CollectionName, encode_snapshot, stream_collection
from projecthub.models.enums import FeedTable, TaskStatus
from projecthub.models.task import Task
from projecthub.services.project_service import ProjectService


def test_encode_snapshot_serializes_items():
    timestamp = datetime(2025, 5, 1, 9, 30, tzinfo=timezone.utc)
    task = Task(
        id=uuid4(),
        project_id=uuid4(),
        title="Wire up sensors",
        status=TaskStatus.REVIEW,
        created_by="sam",
        created_at=timestamp,
        updated_at=timestamp,
    )

    payload = json.loads(encode_snapshot(CollectionName.TASKS, [task]))

    assert payload["type"] == "snapshot"
    assert payload["collection"] == "tasks"
    assert payload["items"][0]["id"] == str(task.id)
    assert payload["items"][0]["status"] == "review"
    assert payload["items"][0]["created_at"].startswith("2025-05-01T09:30:00")


@pytest.mark.asyncio
async def test_stream_subscribes_only_while_streaming(repos, project, actors, change_feed):
    request = SimpleNamespace(is_disconnected=AsyncMock(side_effect=[False, True]))

    response = await stream_collection(
        project_id=project.id,
        collection=CollectionName.MILESTONES,
        actor=actors.initiator,
        request=request,
        projects=ProjectService(repos.projects, repos.members),
        change_feed=change_feed,
        milestone_repo=repos.milestones,
        task_repo=repos.tasks,
    )
    assert await change_feed.subscriber_count(FeedTable.MILESTONES, project.id) == 0

    chunks = [chunk async for chunk in response.body_iterator]

    assert len(chunks) == 1
    assert json.loads(chunks[0].removeprefix("data: "))["items"] == []
    assert await change_feed.subscriber_count(FeedTable.MILESTONES, project.id) == 0
