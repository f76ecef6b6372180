"""
SQLAlchemy models. Importing this package registers every table on Base.metadata.
"""

from synapse.kernel.models.base import Base, TimestampMixin, generate_uuid
from synapse.kernel.models.assignment import AssignmentRecord
from synapse.kernel.models.event_log import EventLog, EventType

__all__ = [
    "Base",
    "TimestampMixin",
    "generate_uuid",
    "AssignmentRecord",
    "EventLog",
    "EventType",
]
