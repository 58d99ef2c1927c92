"""
Change feed event model.
"""

from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel

from projecthub.models.enums import ChangeEventKind, FeedTable


class ChangeEvent(BaseModel):
    """
    One row-level change.

    new_row/old_row carry the raw column values only. Joined fields
    (assignee, creator) are never part of a delta.
    """

    table: FeedTable
    event_kind: ChangeEventKind
    row_id: UUID
    project_id: Optional[UUID] = None
    new_row: Optional[dict[str, Any]] = None
    old_row: Optional[dict[str, Any]] = None
