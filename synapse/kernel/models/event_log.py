"""
Append-only event log.

Every Assignment replacement is recorded here in the same transaction as the
new snapshot.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict

from sqlalchemy import JSON, DateTime, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from synapse.kernel.models.base import Base, generate_uuid


class EventType(str, Enum):
    """All event types for the audit log."""

    ASSIGNMENT_CREATED = "assignment.created"
    ASSIGNMENT_FLAGGED = "assignment.flagged"
    MILESTONE_TOGGLED = "milestone.toggled"
    MINI_COURSE_GENERATED = "mini_course.generated"
    FORMATIVE_COMPLETED = "formative.completed"
    DEBATE_CONCLUDED = "debate.concluded"
    SCAFFOLD_GENERATED = "scaffold.generated"
    SCAFFOLD_COMPLETED = "scaffold.completed"
    VALIDATION_RECORDED = "validation.recorded"


class EventLog(Base):
    """Immutable audit record."""

    __tablename__ = "event_log"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    event_type: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(64), nullable=False)
    payload: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_event_log_entity", "entity_type", "entity_id"),
    )
