"""
Change feed interface.

A push stream of row-level insert/update/delete events, filtered by table
and project.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional
from uuid import UUID, uuid4

from projecthub.models.enums import FeedTable
from projecthub.models.realtime import ChangeEvent


@dataclass(eq=False)
class Subscription:
    """Handle returned by subscribe(); events arrive on `queue`."""

    table: FeedTable
    project_id: Optional[UUID]
    queue: asyncio.Queue[ChangeEvent] = field(default_factory=asyncio.Queue)
    id: UUID = field(default_factory=uuid4)


class IChangeFeed(ABC):
    """Interface for the change feed."""

    @abstractmethod
    async def subscribe(self, table: FeedTable, project_id: Optional[UUID]) -> Subscription:
        """Start receiving events for a table, optionally scoped to one project."""
        pass

    @abstractmethod
    async def unsubscribe(self, subscription: Subscription) -> None:
        """Stop delivering events to a subscription. Safe to call twice."""
        pass

    @abstractmethod
    async def publish(self, event: ChangeEvent) -> None:
        """Deliver an event to every matching subscription."""
        pass
