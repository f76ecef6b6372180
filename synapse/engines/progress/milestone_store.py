"""
Milestone Store - milestone completion and aggregate assignment progress.

toggle() is the only path that changes a milestone's status.
"""

from typing import List, Sequence

from synapse.errors import InvalidState
from synapse.kernel.models.event_log import EventType
from synapse.kernel.store import AssignmentStore
from synapse.logging_config import get_logger
from synapse.schemas.assignment import Assignment, Milestone, TaskStatus

logger = get_logger(__name__)


def compute_progress(milestones: Sequence[Milestone]) -> int:
    """
    Integer percentage of COMPLETED milestones, rounded half up.

    Raises InvalidState for an empty roadmap.
    """
    total = len(milestones)
    if total == 0:
        raise InvalidState("Cannot compute progress for an assignment without milestones")
    completed = sum(1 for m in milestones if m.status == TaskStatus.COMPLETED)
    return (200 * completed + total) // (2 * total)


class MilestoneStore:
    """Ordered milestones of each assignment held by an AssignmentStore."""

    def __init__(self, store: AssignmentStore):
        self.store = store

    async def milestones(self, assignment_id: str) -> List[Milestone]:
        assignment = await self.store.get(assignment_id)
        return list(assignment.milestones)

    async def toggle(self, assignment_id: str, milestone_id: str) -> Assignment:
        """Flip TODO <-> COMPLETED and recompute overall progress (copy-on-write)."""
        assignment = await self.store.get(assignment_id)
        if not assignment.milestones:
            raise InvalidState(f"Assignment {assignment_id} has no milestones")
        target = assignment.milestone(milestone_id)

        new_status = (
            TaskStatus.TODO if target.status == TaskStatus.COMPLETED else TaskStatus.COMPLETED
        )
        milestones = [
            m.model_copy(update={"status": new_status}) if m.id == milestone_id else m
            for m in assignment.milestones
        ]
        progress = compute_progress(milestones)
        updated = assignment.model_copy(
            update={"milestones": milestones, "overall_progress": progress}
        )

        logger.info(
            "Milestone toggled",
            extra={
                "assignment_id": assignment_id,
                "milestone_id": milestone_id,
                "status": new_status.value,
                "overall_progress": progress,
            },
        )
        return await self.store.replace(
            updated,
            EventType.MILESTONE_TOGGLED,
            {"milestone_id": milestone_id, "status": new_status, "overall_progress": progress},
        )
