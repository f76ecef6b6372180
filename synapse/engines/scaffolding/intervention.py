"""
Scaffolding intervention - detects an academic freeze and issues a timed micro-task.

An assignment is frozen when it has no progress at all and its deadline falls
within the freeze window (48 hours by default). A completed scaffolding task
suppresses the offer until a new task is generated.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Optional

from pydantic import ValidationError

from synapse.ai.generator import ContentGenerator
from synapse.ai.prompts import build_scaffolding_prompt
from synapse.ai.result_schemas import SCAFFOLDING_TASK_SCHEMA
from synapse.engines.scaffolding.countdown import ScaffoldCountdown
from synapse.errors import GenerationFailed, InvalidState
from synapse.kernel.models.event_log import EventType
from synapse.kernel.store import AssignmentStore
from synapse.logging_config import get_logger
from synapse.schemas.assignment import Assignment, ScaffoldingTask
from synapse.schemas.common import ensure_aware, utcnow

logger = get_logger(__name__)


@dataclass(frozen=True)
class FreezeAssessment:
    frozen: bool
    suppressed: bool
    offer_task: bool
    hours_to_deadline: float


class ScaffoldingIntervention:
    """Freeze predicate, micro-task generation and the per-assignment countdown."""

    def __init__(
        self,
        store: AssignmentStore,
        generator: ContentGenerator,
        language: str = "en",
        freeze_window_hours: float = 48,
        tick_seconds: float = 1.0,
    ):
        self.store = store
        self.generator = generator
        self.language = language
        self.freeze_window = timedelta(hours=freeze_window_hours)
        self.tick_seconds = tick_seconds
        self._countdowns: Dict[str, ScaffoldCountdown] = {}

    # ── Trigger ──────────────────────────────────────────────────────────

    def is_frozen(self, assignment: Assignment, now: Optional[datetime] = None) -> bool:
        """overall_progress == 0 and the deadline is in the future but inside the window."""
        now = ensure_aware(now) or utcnow()
        remaining = assignment.deadline - now
        return assignment.overall_progress == 0 and timedelta(0) < remaining < self.freeze_window

    def assess(self, assignment: Assignment, now: Optional[datetime] = None) -> FreezeAssessment:
        now = ensure_aware(now) or utcnow()
        frozen = self.is_frozen(assignment, now)
        task = assignment.current_scaffolding_task
        suppressed = task is not None and task.completed
        return FreezeAssessment(
            frozen=frozen,
            suppressed=suppressed,
            offer_task=frozen and not suppressed,
            hours_to_deadline=round((assignment.deadline - now).total_seconds() / 3600, 2),
        )

    async def observe(self, assignment_id: str, now: Optional[datetime] = None) -> Assignment:
        """Recompute the trigger on view and flag the assignment at risk when it changes."""
        assignment = await self.store.get(assignment_id)
        at_risk = self.is_frozen(assignment, now)
        if at_risk == assignment.at_risk:
            return assignment
        logger.info(
            "Assignment risk flag changed",
            extra={"assignment_id": assignment_id, "at_risk": at_risk},
        )
        return await self.store.replace(
            assignment.model_copy(update={"at_risk": at_risk}),
            EventType.ASSIGNMENT_FLAGGED,
            {"at_risk": at_risk},
        )

    # ── Task lifecycle ───────────────────────────────────────────────────

    async def generate(
        self,
        assignment_id: str,
        assignment_context: Optional[str] = None,
    ) -> ScaffoldingTask:
        """Generate a new micro-task, superseding any current one."""
        assignment = await self.store.get(assignment_id)
        prompt = build_scaffolding_prompt(
            assignment_context or assignment.context, language=self.language
        )
        payload = await self.generator.generate(prompt, SCAFFOLDING_TASK_SCHEMA)
        try:
            task = ScaffoldingTask(
                id=str(uuid.uuid4()),
                instruction=payload["instruction"],
                duration_seconds=payload["durationSeconds"],
                completed=False,
            )
        except ValidationError as exc:
            raise GenerationFailed(
                "scaffolding task did not match the expected shape",
                schema_name="scaffolding_task",
            ) from exc

        previous = self._countdowns.pop(assignment_id, None)
        if previous is not None:
            previous.cancel()

        current = await self.store.get(assignment_id)
        await self.store.replace(
            current.model_copy(update={"current_scaffolding_task": task}),
            EventType.SCAFFOLD_GENERATED,
            {"task_id": task.id, "duration_seconds": task.duration_seconds},
        )
        logger.info(
            "Scaffolding task generated",
            extra={"assignment_id": assignment_id, "task_id": task.id},
        )
        return task

    async def start(self, assignment_id: str) -> ScaffoldCountdown:
        """Start (or return the running) countdown for the current task."""
        assignment = await self.store.get(assignment_id)
        task = assignment.current_scaffolding_task
        if task is None:
            raise InvalidState(f"Assignment {assignment_id} has no scaffolding task")
        if task.completed:
            raise InvalidState(f"Scaffolding task {task.id} is already completed")

        countdown = self._countdowns.get(assignment_id)
        if countdown is None or countdown.task_id != task.id:
            if countdown is not None:
                countdown.cancel()
            countdown = ScaffoldCountdown(task.id, task.duration_seconds, self.tick_seconds)
            self._countdowns[assignment_id] = countdown
        countdown.start()
        return countdown

    def remaining_seconds(self, assignment_id: str) -> Optional[int]:
        """Remaining countdown seconds, or None when no countdown was started."""
        countdown = self._countdowns.get(assignment_id)
        return countdown.remaining_seconds if countdown is not None else None

    def is_counting(self, assignment_id: str) -> bool:
        countdown = self._countdowns.get(assignment_id)
        return countdown is not None and countdown.running

    async def complete(self, assignment_id: str) -> Assignment:
        """Mark the current task done and stop its countdown. Idempotent."""
        countdown = self._countdowns.pop(assignment_id, None)
        if countdown is not None:
            countdown.cancel()

        assignment = await self.store.get(assignment_id)
        task = assignment.current_scaffolding_task
        if task is None:
            raise InvalidState(f"Assignment {assignment_id} has no scaffolding task")
        if task.completed:
            return assignment

        logger.info(
            "Scaffolding task completed",
            extra={"assignment_id": assignment_id, "task_id": task.id},
        )
        return await self.store.replace(
            assignment.model_copy(
                update={"current_scaffolding_task": task.model_copy(update={"completed": True})}
            ),
            EventType.SCAFFOLD_COMPLETED,
            {"task_id": task.id},
        )

    async def stop(self, assignment_id: str) -> None:
        """Cancel the assignment's countdown without completing its task (view unmount)."""
        countdown = self._countdowns.pop(assignment_id, None)
        if countdown is None:
            return
        await countdown.stop()
        logger.debug(
            "Scaffolding countdown stopped",
            extra={"assignment_id": assignment_id, "task_id": countdown.task_id},
        )

    async def teardown(self) -> None:
        """Cancel every running countdown (app shutdown)."""
        countdowns = list(self._countdowns.values())
        self._countdowns.clear()
        for countdown in countdowns:
            await countdown.stop()
