"""
SQLite implementation of Milestone repository.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import delete, func, select
from sqlalchemy.orm import aliased

from projecthub.core.exceptions import NotFoundError
from projecthub.infrastructure.local.database import (
    MilestoneActivityORM,
    MilestoneORM,
    UserORM,
    get_session_factory,
    open_session,
    row_to_dict,
    to_naive_utc,
)
from projecthub.infrastructure.local.user_repository import user_summary
from projecthub.interfaces.change_feed import IChangeFeed
from projecthub.interfaces.milestone_repository import IMilestoneRepository
from projecthub.models.enums import (
    ChangeEventKind,
    FeedTable,
    MilestoneActivityType,
    MilestoneStatus,
)
from projecthub.models.milestone import (
    Milestone,
    MilestoneActivity,
    MilestoneActivityCreate,
    MilestoneCreate,
)
from projecthub.models.realtime import ChangeEvent

_UPDATABLE_FIELDS = {
    "title",
    "description",
    "due_date",
    "assigned_to",
    "status",
    "progress",
    "completed_at",
}


class SqliteMilestoneRepository(IMilestoneRepository):
    """SQLite implementation of milestone repository."""

    def __init__(self, session_factory=None, change_feed: IChangeFeed | None = None):
        """
        Initialize repository.

        Args:
            session_factory: Optional session factory (for testing)
            change_feed: Receives an event after every committed write
        """
        self._session_factory = session_factory or get_session_factory()
        self._change_feed = change_feed

    def _orm_to_model(self, orm: MilestoneORM, assignee: UserORM | None = None) -> Milestone:
        """Convert ORM object to Pydantic model."""
        return Milestone(
            id=UUID(orm.id),
            project_id=UUID(orm.project_id),
            title=orm.title,
            description=orm.description,
            due_date=orm.due_date,
            status=MilestoneStatus(orm.status),
            progress=orm.progress or 0,
            assigned_to=orm.assigned_to,
            created_by=orm.created_by,
            completed_at=orm.completed_at,
            position=orm.position or 0,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
            assignee=user_summary(assignee),
        )

    def _activity_to_model(
        self, orm: MilestoneActivityORM, user: UserORM | None = None
    ) -> MilestoneActivity:
        return MilestoneActivity(
            id=UUID(orm.id),
            milestone_id=UUID(orm.milestone_id),
            user_id=orm.user_id,
            activity_type=MilestoneActivityType(orm.activity_type),
            description=orm.description,
            metadata=orm.metadata_json or {},
            created_at=orm.created_at,
            user=user_summary(user),
        )

    def _joined_select(self):
        assignee = aliased(UserORM)
        return select(MilestoneORM, assignee).outerjoin(
            assignee, assignee.id == MilestoneORM.assigned_to
        )

    async def _publish(
        self,
        kind: ChangeEventKind,
        row_id: str,
        project_id: str,
        new_row: dict[str, Any] | None = None,
        old_row: dict[str, Any] | None = None,
        table: FeedTable = FeedTable.MILESTONES,
    ) -> None:
        if not self._change_feed:
            return
        await self._change_feed.publish(
            ChangeEvent(
                table=table,
                event_kind=kind,
                row_id=UUID(row_id),
                project_id=UUID(project_id),
                new_row=new_row,
                old_row=old_row,
            )
        )

    async def create(self, user_id: str, milestone: MilestoneCreate) -> Milestone:
        """Create a new milestone after the highest existing position."""
        async with open_session(self._session_factory) as session:
            max_position = (
                await session.execute(
                    select(func.max(MilestoneORM.position)).where(
                        MilestoneORM.project_id == str(milestone.project_id)
                    )
                )
            ).scalar()
            orm = MilestoneORM(
                id=str(uuid4()),
                project_id=str(milestone.project_id),
                title=milestone.title,
                description=milestone.description,
                due_date=to_naive_utc(milestone.due_date),
                status=MilestoneStatus.PENDING.value,
                progress=0,
                assigned_to=milestone.assigned_to,
                created_by=user_id,
                position=(max_position or 0) + 1,
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            assignee = await session.get(UserORM, orm.assigned_to) if orm.assigned_to else None
            new_row = row_to_dict(orm)
            created = self._orm_to_model(orm, assignee)

        await self._publish(ChangeEventKind.INSERT, new_row["id"], new_row["project_id"], new_row=new_row)
        return created

    async def get(self, milestone_id: UUID) -> Milestone | None:
        async with open_session(self._session_factory) as session:
            result = await session.execute(
                self._joined_select().where(MilestoneORM.id == str(milestone_id))
            )
            row = result.first()
            return self._orm_to_model(*row) if row else None

    async def get_project_id(self, milestone_id: UUID) -> UUID | None:
        """Get project ID for a milestone."""
        async with open_session(self._session_factory) as session:
            result = await session.execute(
                select(MilestoneORM.project_id).where(MilestoneORM.id == str(milestone_id))
            )
            pid = result.scalar_one_or_none()
            return UUID(pid) if pid else None

    async def list_by_project(self, project_id: UUID) -> list[Milestone]:
        async with open_session(self._session_factory) as session:
            result = await session.execute(
                self._joined_select()
                .where(MilestoneORM.project_id == str(project_id))
                .order_by(MilestoneORM.due_date.asc(), MilestoneORM.position.asc())
            )
            return [self._orm_to_model(orm, assignee) for orm, assignee in result.all()]

    async def update(self, milestone_id: UUID, changes: dict[str, Any]) -> Milestone:
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update milestone fields: {sorted(unknown)}")

        async with open_session(self._session_factory) as session:
            result = await session.execute(
                select(MilestoneORM).where(MilestoneORM.id == str(milestone_id))
            )
            orm = result.scalar_one_or_none()
            if not orm:
                raise NotFoundError(f"Milestone {milestone_id} not found")

            old_row = row_to_dict(orm)
            for field, value in changes.items():
                if isinstance(value, Enum):
                    value = value.value
                elif isinstance(value, datetime):
                    value = to_naive_utc(value)
                setattr(orm, field, value)
            orm.updated_at = datetime.utcnow()

            await session.commit()
            await session.refresh(orm)
            assignee = await session.get(UserORM, orm.assigned_to) if orm.assigned_to else None
            new_row = row_to_dict(orm)
            updated = self._orm_to_model(orm, assignee)

        await self._publish(
            ChangeEventKind.UPDATE, new_row["id"], new_row["project_id"], new_row=new_row, old_row=old_row
        )
        return updated

    async def delete(self, milestone_id: UUID) -> bool:
        """Delete a milestone together with its activity trail."""
        async with open_session(self._session_factory) as session:
            result = await session.execute(
                select(MilestoneORM).where(MilestoneORM.id == str(milestone_id))
            )
            orm = result.scalar_one_or_none()
            if not orm:
                return False

            old_row = row_to_dict(orm)
            await session.execute(
                delete(MilestoneActivityORM).where(
                    MilestoneActivityORM.milestone_id == str(milestone_id)
                )
            )
            await session.delete(orm)
            await session.commit()

        await self._publish(ChangeEventKind.DELETE, old_row["id"], old_row["project_id"], old_row=old_row)
        return True

    async def add_activity(
        self, milestone_id: UUID, user_id: str, activity: MilestoneActivityCreate
    ) -> MilestoneActivity:
        async with open_session(self._session_factory) as session:
            project_id = (
                await session.execute(
                    select(MilestoneORM.project_id).where(MilestoneORM.id == str(milestone_id))
                )
            ).scalar_one_or_none()
            if not project_id:
                raise NotFoundError(f"Milestone {milestone_id} not found")

            orm = MilestoneActivityORM(
                id=str(uuid4()),
                milestone_id=str(milestone_id),
                user_id=user_id,
                activity_type=activity.activity_type.value,
                description=activity.description,
                metadata_json=activity.metadata or {},
            )
            session.add(orm)
            await session.commit()
            await session.refresh(orm)
            user = await session.get(UserORM, user_id)
            new_row = row_to_dict(orm)
            created = self._activity_to_model(orm, user)

        await self._publish(
            ChangeEventKind.INSERT,
            new_row["id"],
            project_id,
            new_row=new_row,
            table=FeedTable.MILESTONE_ACTIVITIES,
        )
        return created

    async def list_activities(self, milestone_id: UUID) -> list[MilestoneActivity]:
        async with open_session(self._session_factory) as session:
            result = await session.execute(
                select(MilestoneActivityORM, UserORM)
                .outerjoin(UserORM, UserORM.id == MilestoneActivityORM.user_id)
                .where(MilestoneActivityORM.milestone_id == str(milestone_id))
                .order_by(MilestoneActivityORM.created_at.desc())
            )
            return [self._activity_to_model(orm, user) for orm, user in result.all()]
