"""
Assignment repository - durable sink for full Assignment snapshots.
"""

from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from synapse.kernel.events.event_store import EventStore
from synapse.kernel.models.assignment import AssignmentRecord
from synapse.kernel.models.event_log import EventType
from synapse.logging_config import get_logger
from synapse.schemas.assignment import Assignment

logger = get_logger(__name__)


class AssignmentRepository:
    """
    Persists whole Assignment documents (never partial fields).

    Each save upserts the snapshot and appends one event row in the same
    transaction.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def load(self, assignment_id: str) -> Optional[Assignment]:
        async with self._session_maker() as session:
            row = await session.get(AssignmentRecord, assignment_id)
            if row is None:
                return None
            return Assignment.model_validate(row.document)

    async def save(
        self,
        assignment: Assignment,
        event_type: EventType,
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        document = assignment.model_dump(mode="json", by_alias=True)
        async with self._session_maker() as session:
            try:
                row = await session.get(AssignmentRecord, assignment.id)
                if row is None:
                    row = AssignmentRecord(
                        id=assignment.id,
                        title=assignment.title,
                        deadline=assignment.deadline,
                        overall_progress=assignment.overall_progress,
                        revision=1,
                        document=document,
                    )
                    session.add(row)
                else:
                    row.title = assignment.title
                    row.deadline = assignment.deadline
                    row.overall_progress = assignment.overall_progress
                    row.revision = row.revision + 1
                    row.document = document

                await EventStore(session).log(
                    event_type=event_type,
                    entity_type="assignment",
                    entity_id=assignment.id,
                    payload=payload,
                )
                await session.commit()
            except Exception:
                await session.rollback()
                logger.exception(
                    "Failed to persist assignment snapshot",
                    extra={"assignment_id": assignment.id, "event_type": event_type.value},
                )
                raise
