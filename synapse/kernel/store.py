"""
Assignment store - the single owner of current Assignment snapshots.

Engines read the latest snapshot, build an updated copy and hand it back through
replace(). The in-memory swap happens before replace() first suspends, so two
coroutines that each re-read the snapshot immediately before replacing it never
lose each other's updates.
"""

from typing import Any, Callable, Dict, List, Optional

from synapse.errors import InvalidState, NotFound
from synapse.kernel.models.event_log import EventType
from synapse.kernel.repository import AssignmentRepository
from synapse.logging_config import get_logger
from synapse.schemas.assignment import Assignment, ValidationResult

logger = get_logger(__name__)

AssignmentListener = Callable[[Optional[Assignment], Assignment], None]


class AssignmentStore:
    """Copy-on-write registry of assignments, optionally backed by a repository."""

    def __init__(self, repository: Optional[AssignmentRepository] = None):
        self._assignments: Dict[str, Assignment] = {}
        self._repository = repository
        self._listeners: List[AssignmentListener] = []

    def subscribe(self, listener: AssignmentListener) -> None:
        """Register a callback receiving (previous, current) on every replacement."""
        self._listeners.append(listener)

    def peek(self, assignment_id: str) -> Optional[Assignment]:
        """Cached snapshot without touching the repository."""
        return self._assignments.get(assignment_id)

    async def get(self, assignment_id: str) -> Assignment:
        assignment = self._assignments.get(assignment_id)
        if assignment is not None:
            return assignment
        if self._repository is not None:
            loaded = await self._repository.load(assignment_id)
            if loaded is not None:
                # Another coroutine may have cached a newer snapshot meanwhile
                return self._assignments.setdefault(assignment_id, loaded)
        raise NotFound(f"Assignment {assignment_id} not found")

    async def create(self, assignment: Assignment) -> Assignment:
        if assignment.id in self._assignments:
            raise InvalidState(f"Assignment {assignment.id} already exists")
        return await self.replace(
            assignment,
            EventType.ASSIGNMENT_CREATED,
            {"milestones": len(assignment.milestones)},
        )

    async def replace(
        self,
        assignment: Assignment,
        event_type: EventType,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Assignment:
        """
        Swap in a new snapshot, persist it, then notify listeners.

        If persisting fails the previous snapshot is restored (unless a later
        replacement has already superseded this one) and the error propagates.
        """
        previous = self._assignments.get(assignment.id)
        self._assignments[assignment.id] = assignment

        if self._repository is not None:
            try:
                await self._repository.save(assignment, event_type, payload)
            except Exception:
                if self._assignments.get(assignment.id) is assignment:
                    if previous is None:
                        del self._assignments[assignment.id]
                    else:
                        self._assignments[assignment.id] = previous
                logger.warning(
                    "Assignment replacement not persisted, snapshot restored",
                    extra={"assignment_id": assignment.id, "event_type": event_type.value},
                )
                raise

        for listener in self._listeners:
            listener(previous, assignment)

        logger.debug(
            "Assignment replaced",
            extra={"assignment_id": assignment.id, "event_type": event_type.value},
        )
        return assignment

    async def append_validation(
        self,
        assignment_id: str,
        result: ValidationResult,
    ) -> Assignment:
        """Append a summative assessment result to the assignment's history."""
        assignment = await self.get(assignment_id)
        updated = assignment.model_copy(
            update={"validation_history": [*assignment.validation_history, result]}
        )
        return await self.replace(
            updated,
            EventType.VALIDATION_RECORDED,
            {"overall_score": result.overall_score},
        )
