import asyncio
from typing import Optional
from uuid import UUID

from projecthub.core.logger import setup_logger
from projecthub.interfaces.change_feed import IChangeFeed, Subscription
from projecthub.models.enums import FeedTable
from projecthub.models.realtime import ChangeEvent

logger = setup_logger(__name__)


class ChangeFeedHub(IChangeFeed):
    """
    In-process change feed.

    Repositories publish after each commit; subscribers get events for one
    table, optionally narrowed to one project. There is no replay: an event
    published while nobody is subscribed is gone.
    """

    def __init__(self) -> None:
        self._subscriptions: dict[tuple[FeedTable, Optional[UUID]], set[Subscription]] = {}
        self._lock = asyncio.Lock()

    async def subscribe(self, table: FeedTable, project_id: Optional[UUID]) -> Subscription:
        subscription = Subscription(table=table, project_id=project_id)
        async with self._lock:
            self._subscriptions.setdefault((table, project_id), set()).add(subscription)
        logger.debug("Subscribed %s to %s (project=%s)", subscription.id, table.value, project_id)
        return subscription

    async def unsubscribe(self, subscription: Subscription) -> None:
        key = (subscription.table, subscription.project_id)
        async with self._lock:
            subscriptions = self._subscriptions.get(key)
            if not subscriptions:
                return
            subscriptions.discard(subscription)
            if not subscriptions:
                self._subscriptions.pop(key, None)

    async def publish(self, event: ChangeEvent) -> None:
        async with self._lock:
            targets = list(self._subscriptions.get((event.table, event.project_id), set()))
            if event.project_id is not None:
                targets.extend(self._subscriptions.get((event.table, None), set()))
        for subscription in targets:
            subscription.queue.put_nowait(event)

    async def subscriber_count(self, table: FeedTable, project_id: Optional[UUID]) -> int:
        async with self._lock:
            return len(self._subscriptions.get((table, project_id), set()))


change_feed = ChangeFeedHub()
