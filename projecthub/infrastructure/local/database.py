"""
SQLite database configuration and ORM models.

This module defines the SQLAlchemy ORM models and database initialization.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from projecthub.core.config import get_settings
from projecthub.core.exceptions import DependencyFailureError
from projecthub.core.logger import setup_logger
from projecthub.utils.datetime_utils import ensure_utc

logger = setup_logger(__name__)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


# ===========================================
# ORM Models
# ===========================================


class UserORM(Base):
    """User profile ORM model."""

    __tablename__ = "users"

    id = Column(String(255), primary_key=True)
    email = Column(String(255), nullable=True)
    display_name = Column(String(255), nullable=False)
    avatar_url = Column(String(500), nullable=True)
    role = Column(String(20), default="student", nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class ProjectORM(Base):
    """Project ORM model."""

    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    tags = Column(JSON, nullable=True, default=list)
    status = Column(String(20), default="open", index=True)
    initiator_id = Column(String(255), nullable=False, index=True)
    final_mentor_id = Column(String(255), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class ProjectMemberORM(Base):
    """Project team member ORM model."""

    __tablename__ = "project_members"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=False, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    is_lead = Column(Boolean, default=False)
    joined_at = Column(DateTime, default=datetime.utcnow)


class MilestoneORM(Base):
    """Milestone ORM model."""

    __tablename__ = "milestones"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    due_date = Column(DateTime, nullable=False, index=True)
    # pending | in_progress | completed. "overdue" is never stored.
    status = Column(String(20), default="pending", nullable=False)
    progress = Column(Integer, default=0, nullable=False)
    assigned_to = Column(String(255), nullable=True)
    created_by = Column(String(255), nullable=False)
    completed_at = Column(DateTime, nullable=True)
    position = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class MilestoneActivityORM(Base):
    """Milestone activity ORM model (append-only)."""

    __tablename__ = "milestone_activities"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    milestone_id = Column(String(36), ForeignKey("milestones.id"), nullable=False, index=True)
    user_id = Column(String(255), nullable=False)
    activity_type = Column(String(30), nullable=False)
    description = Column(Text, nullable=False)
    metadata_json = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class TaskORM(Base):
    """Task ORM model."""

    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), default="todo", index=True)
    priority = Column(String(10), default="medium")
    assigned_to = Column(String(255), nullable=True)
    created_by = Column(String(255), nullable=False)
    due_date = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    position = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class TaskCommentORM(Base):
    """Task comment ORM model."""

    __tablename__ = "task_comments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    task_id = Column(String(36), ForeignKey("tasks.id"), nullable=False, index=True)
    user_id = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


# ===========================================
# Helpers
# ===========================================


def row_to_dict(orm: Base) -> dict[str, Any]:
    """Raw column values of a row, the way the change feed delivers them."""
    values: dict[str, Any] = {}
    for column in orm.__table__.columns:
        value = getattr(orm, column.key)
        if isinstance(value, datetime):
            value = value.isoformat()
        elif isinstance(value, UUID):
            value = str(value)
        values[column.name] = value
    return values


def to_naive_utc(value: datetime | None) -> datetime | None:
    """SQLite DateTime columns hold naive UTC."""
    if value is None or value.tzinfo is None:
        return value
    return ensure_utc(value).replace(tzinfo=None)


@asynccontextmanager
async def open_session(session_factory) -> AsyncIterator[AsyncSession]:
    """
    Open a session, translating store failures into DependencyFailureError.

    Domain errors raised inside the block pass through untouched.
    """
    try:
        async with session_factory() as session:
            yield session
    except SQLAlchemyError as exc:
        logger.error("Database operation failed: %s", exc)
        raise DependencyFailureError("Database operation failed", details=str(exc)) from exc


# ===========================================
# Database Session Management
# ===========================================


def get_engine():
    """Get async engine instance."""
    settings = get_settings()
    return create_async_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)


def get_session_factory():
    """Get async session factory."""
    engine = get_engine()
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db():
    """Initialize database tables."""
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
