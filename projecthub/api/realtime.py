import asyncio
import json
from enum import Enum
from typing import AsyncGenerator
from uuid import UUID

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from projecthub.api.deps import ChangeFeed, CurrentActor, MilestoneRepo, ProjectSvc, TaskRepo
from projecthub.core.config import get_settings
from projecthub.services.realtime_sync import MilestoneCollection, RealtimeCollection, TaskCollection

router = APIRouter(prefix="/realtime", tags=["realtime"])


class CollectionName(str, Enum):
    MILESTONES = "milestones"
    TASKS = "tasks"


def encode_snapshot(collection: CollectionName, items: list) -> str:
    payload = {
        "type": "snapshot",
        "collection": collection.value,
        "items": [item.model_dump(mode="json") for item in items],
    }
    return json.dumps(payload)


@router.get("/projects/{project_id}/{collection}/stream")
async def stream_collection(
    project_id: UUID,
    collection: CollectionName,
    actor: CurrentActor,
    request: Request,
    projects: ProjectSvc,
    change_feed: ChangeFeed,
    milestone_repo: MilestoneRepo,
    task_repo: TaskRepo,
) -> StreamingResponse:
    """
    Server-sent events carrying the full collection after every change.

    Reconnecting (for example when the tab regains focus) starts with a
    fresh snapshot, which recovers anything missed while disconnected.
    """
    await projects.get_project(actor, project_id)

    live: RealtimeCollection
    if collection == CollectionName.MILESTONES:
        live = MilestoneCollection(project_id, change_feed, milestone_repo)
    else:
        live = TaskCollection(project_id, change_feed, task_repo)

    snapshots: asyncio.Queue[list] = asyncio.Queue()
    live.add_listener(snapshots.put_nowait)
    keepalive = get_settings().REALTIME_KEEPALIVE_SECONDS

    async def event_generator() -> AsyncGenerator[str, None]:
        try:
            await live.mount()
            while True:
                if await request.is_disconnected():
                    break
                try:
                    items = await asyncio.wait_for(snapshots.get(), timeout=keepalive)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                yield f"data: {encode_snapshot(collection, items)}\n\n"
        finally:
            await live.unmount()

    return StreamingResponse(event_generator(), media_type="text/event-stream")
