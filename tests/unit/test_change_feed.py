from uuid import uuid4

import pytest

from projecthub.models.enums import ChangeEventKind, FeedTable
from projecthub.models.realtime import ChangeEvent
from projecthub.services.realtime_service import ChangeFeedHub


def _event(table=FeedTable.MILESTONES, project_id=None):
    return ChangeEvent(
        table=table,
        event_kind=ChangeEventKind.UPDATE,
        row_id=uuid4(),
        project_id=project_id,
    )


@pytest.mark.asyncio
async def test_publish_filters_by_table_and_project():
    hub = ChangeFeedHub()
    project_id = uuid4()
    scoped = await hub.subscribe(FeedTable.MILESTONES, project_id)
    everything = await hub.subscribe(FeedTable.MILESTONES, None)
    tasks = await hub.subscribe(FeedTable.TASKS, project_id)

    mine = _event(project_id=project_id)
    other = _event(project_id=uuid4())
    await hub.publish(mine)
    await hub.publish(other)

    assert scoped.queue.get_nowait() is mine
    assert scoped.queue.empty()
    assert everything.queue.qsize() == 2
    assert tasks.queue.empty()


@pytest.mark.asyncio
async def test_unsubscribe_twice_is_safe():
    hub = ChangeFeedHub()
    project_id = uuid4()
    subscription = await hub.subscribe(FeedTable.TASKS, project_id)

    await hub.unsubscribe(subscription)
    await hub.unsubscribe(subscription)
    await hub.publish(_event(FeedTable.TASKS, project_id))

    assert subscription.queue.empty()
    assert await hub.subscriber_count(FeedTable.TASKS, project_id) == 0
