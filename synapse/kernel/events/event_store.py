"""
Event Store service for append-only audit logging.

Events are added to the caller's session; the caller commits them together
with the state change they describe.
"""

import enum
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from synapse.kernel.models.event_log import EventLog, EventType


class EventStore:
    """
    Service for managing the immutable event log.

    Usage:
        event_store = EventStore(session)
        await event_store.log(
            event_type=EventType.MILESTONE_TOGGLED,
            entity_type="assignment",
            entity_id=assignment.id,
            payload={"milestone_id": milestone_id, "status": "completed"},
        )
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def log(
        self,
        event_type: EventType,
        entity_type: str,
        entity_id: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> EventLog:
        """Add an event to the session. The caller flushes/commits."""
        event = EventLog(
            event_type=event_type.value,
            entity_type=entity_type,
            entity_id=str(entity_id),
            payload=self._serialize_payload(payload or {}),
        )
        self.session.add(event)
        return event

    async def get_entity_history(
        self,
        entity_type: str,
        entity_id: str,
        event_types: Optional[List[EventType]] = None,
        limit: int = 100,
    ) -> List[EventLog]:
        """Event history for one entity, newest first."""
        query = select(EventLog).where(
            and_(
                EventLog.entity_type == entity_type,
                EventLog.entity_id == str(entity_id),
            )
        )
        if event_types:
            query = query.where(EventLog.event_type.in_([e.value for e in event_types]))
        query = query.order_by(desc(EventLog.created_at)).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    def _serialize_payload(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Make payload values JSON-safe."""
        result: Dict[str, Any] = {}
        for key, value in payload.items():
            if isinstance(value, (uuid.UUID, datetime)):
                result[key] = str(value) if isinstance(value, uuid.UUID) else value.isoformat()
            elif isinstance(value, enum.Enum):
                result[key] = value.value
            elif isinstance(value, dict):
                result[key] = self._serialize_payload(value)
            else:
                result[key] = value
        return result
