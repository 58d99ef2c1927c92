"""
Live, project-scoped collections kept in sync with the change feed.

A collection loads its rows once, then listens on the change feed. Events
are only used as "row X changed" signals: the row is re-fetched through the
repository so joined fields (assignee name, avatar) are always resolved
and derived fields are recomputed. Payloads carried by the event are never
merged into state.

Events missed while nobody is listening are not replayed; `on_focus()`
re-fetches the whole collection to recover.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Generic, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel

from projecthub.core.exceptions import PortalError
from projecthub.core.logger import setup_logger
from projecthub.interfaces.change_feed import IChangeFeed, Subscription
from projecthub.interfaces.milestone_repository import IMilestoneRepository
from projecthub.interfaces.task_repository import ITaskRepository
from projecthub.models.enums import ChangeEventKind, FeedTable
from projecthub.models.milestone import Milestone
from projecthub.models.realtime import ChangeEvent
from projecthub.models.task import Task
from projecthub.utils.datetime_utils import now_utc

logger = setup_logger(__name__)

T = TypeVar("T", bound=BaseModel)
SnapshotListener = Callable[[list], None]


class RealtimeCollection(ABC, Generic[T]):
    """Base class for a synchronized collection of rows belonging to one project."""

    table: FeedTable

    def __init__(self, project_id: UUID, change_feed: IChangeFeed):
        self.project_id = project_id
        self._change_feed = change_feed
        self._items: list[T] = []
        self._listeners: list[SnapshotListener] = []
        self._subscription: Optional[Subscription] = None
        self._pump: Optional[asyncio.Task] = None

    @abstractmethod
    async def fetch_all(self) -> list[T]:
        """Load every row of the collection with joins resolved."""
        pass

    @abstractmethod
    async def fetch_one(self, row_id: UUID) -> Optional[T]:
        """Load one row with joins resolved, or None if it is gone."""
        pass

    def transform(self, item: T) -> T:
        """Recompute derived fields after a fetch."""
        return item

    @property
    def items(self) -> list[T]:
        return list(self._items)

    @property
    def is_mounted(self) -> bool:
        return self._subscription is not None

    def add_listener(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a callback for new snapshots. Returns a function that removes it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _notify(self) -> None:
        snapshot = self.items
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Snapshot listener failed for %s collection", self.table.value)

    async def mount(self) -> list[T]:
        if self.is_mounted:
            return self.items

        # Events committed during the load stay queued and are applied on top of it.
        self._subscription = await self._change_feed.subscribe(self.table, self.project_id)
        try:
            await self.refresh()
            self._pump = asyncio.create_task(self._run(self._subscription))
        except BaseException:
            await self.unmount()
            raise
        logger.debug("Mounted %s collection for project %s", self.table.value, self.project_id)
        return self.items

    async def unmount(self) -> None:
        subscription, pump = self._subscription, self._pump
        self._subscription = None
        self._pump = None
        if subscription is not None:
            await self._change_feed.unsubscribe(subscription)
        if pump is not None and not pump.done():
            pump.cancel()
            try:
                await pump
            except asyncio.CancelledError:
                pass

    async def refresh(self) -> list[T]:
        items = await self.fetch_all()
        self._items = [self.transform(item) for item in items]
        self._notify()
        return self.items

    async def on_focus(self) -> list[T]:
        """Full re-fetch, regardless of what the feed delivered."""
        return await self.refresh()

    async def settle(self) -> None:
        """Wait until every event queued so far has been reconciled."""
        if self._subscription is not None:
            await self._subscription.queue.join()

    async def _run(self, subscription: Subscription) -> None:
        queue = subscription.queue
        while True:
            event = await queue.get()
            try:
                await self.apply(event)
            except PortalError as exc:
                logger.warning(
                    "Dropped %s event for %s %s: %s",
                    event.event_kind.value,
                    self.table.value,
                    event.row_id,
                    exc.message,
                )
            except Exception:
                logger.exception(
                    "Failed to apply %s event for %s %s",
                    event.event_kind.value,
                    self.table.value,
                    event.row_id,
                )
            finally:
                queue.task_done()

    def _index_of(self, row_id: UUID) -> int:
        for index, item in enumerate(self._items):
            if item.id == row_id:
                return index
        return -1

    async def apply(self, event: ChangeEvent) -> None:
        """Reconcile one change event into the collection."""
        if event.table != self.table:
            return
        if event.project_id is not None and event.project_id != self.project_id:
            return

        index = self._index_of(event.row_id)
        if event.event_kind == ChangeEventKind.DELETE:
            if index < 0:
                return
            del self._items[index]
        elif event.event_kind == ChangeEventKind.UPDATE:
            if index < 0:
                return
            row = await self.fetch_one(event.row_id)
            index = self._index_of(event.row_id)
            if index < 0:
                return
            if row is None:
                del self._items[index]
            else:
                self._items[index] = self.transform(row)
        else:
            row = await self.fetch_one(event.row_id)
            if row is None:
                return
            # The initial load may already contain the row.
            index = self._index_of(event.row_id)
            if index < 0:
                self._items.append(self.transform(row))
            else:
                self._items[index] = self.transform(row)
        self._notify()


class MilestoneCollection(RealtimeCollection[Milestone]):
    table = FeedTable.MILESTONES

    def __init__(
        self,
        project_id: UUID,
        change_feed: IChangeFeed,
        milestone_repo: IMilestoneRepository,
        clock: Callable[[], datetime] = now_utc,
    ):
        super().__init__(project_id, change_feed)
        self.milestone_repo = milestone_repo
        self._clock = clock

    async def fetch_all(self) -> list[Milestone]:
        return await self.milestone_repo.list_by_project(self.project_id)

    async def fetch_one(self, row_id: UUID) -> Optional[Milestone]:
        milestone = await self.milestone_repo.get(row_id)
        if milestone and milestone.project_id == self.project_id:
            return milestone
        return None

    def transform(self, item: Milestone) -> Milestone:
        return item.with_derived_status(self._clock())


class TaskCollection(RealtimeCollection[Task]):
    table = FeedTable.TASKS

    def __init__(self, project_id: UUID, change_feed: IChangeFeed, task_repo: ITaskRepository):
        super().__init__(project_id, change_feed)
        self.task_repo = task_repo

    async def fetch_all(self) -> list[Task]:
        return await self.task_repo.list_by_project(self.project_id)

    async def fetch_one(self, row_id: UUID) -> Optional[Task]:
        task = await self.task_repo.get(row_id)
        if task and task.project_id == self.project_id:
            return task
        return None
