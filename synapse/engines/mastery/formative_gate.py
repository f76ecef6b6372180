"""
Formative gate - a milestone's debate unlocks once its formative action is done.

The flag is monotonic: once open, the gate never closes again.
"""

from synapse.errors import InvalidState
from synapse.kernel.models.event_log import EventType
from synapse.kernel.store import AssignmentStore
from synapse.logging_config import get_logger
from synapse.schemas.assignment import Assignment

logger = get_logger(__name__)


class FormativeGate:
    """Reads and opens the formative-task flag on a milestone's mini-course."""

    def __init__(self, store: AssignmentStore):
        self.store = store

    async def is_open(self, assignment_id: str, milestone_id: str) -> bool:
        assignment = await self.store.get(assignment_id)
        course = assignment.milestone(milestone_id).mini_course
        return course is not None and course.formative_task_completed

    async def complete(self, assignment_id: str, milestone_id: str) -> Assignment:
        """Mark the formative action done. Repeated calls are no-ops."""
        assignment = await self.store.get(assignment_id)
        milestone = assignment.milestone(milestone_id)
        course = milestone.mini_course
        if course is None:
            raise InvalidState(
                f"Milestone {milestone_id} has no mini-course; nothing to complete"
            )
        if course.formative_task_completed:
            return assignment

        updated = assignment.with_milestone(
            milestone.model_copy(
                update={"mini_course": course.model_copy(update={"formative_task_completed": True})}
            )
        )
        logger.info(
            "Formative task completed",
            extra={"assignment_id": assignment_id, "milestone_id": milestone_id},
        )
        return await self.store.replace(
            updated,
            EventType.FORMATIVE_COMPLETED,
            {"milestone_id": milestone_id},
        )
