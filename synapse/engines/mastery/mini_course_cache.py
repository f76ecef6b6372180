"""
Mini-course cache - lazy, single-flight generation of instructional content.

A mini-course is generated at most once per milestone and cached on the
milestone itself. While a generation is pending, further ensure() calls for the
same milestone await that same task instead of issuing another request.
"""

import asyncio
from typing import Any, Dict, Optional, Tuple

from pydantic import ValidationError

from synapse.ai.generator import ContentGenerator
from synapse.ai.prompts import build_mini_course_prompt
from synapse.ai.result_schemas import MINI_COURSE_SCHEMA
from synapse.errors import GenerationFailed
from synapse.kernel.models.event_log import EventType
from synapse.kernel.store import AssignmentStore
from synapse.logging_config import get_logger
from synapse.schemas.assignment import MasteryStatus, Milestone, MiniCourse

logger = get_logger(__name__)

_CacheKey = Tuple[str, str]


def _normalize_concepts(raw: Any) -> Any:
    """Accept concepts as plain strings or as {"term": ...} objects."""
    if not isinstance(raw, list):
        return raw
    return [c.get("term", c) if isinstance(c, dict) else c for c in raw]


class MiniCourseCache:
    """Per-milestone lazy cache with an explicit in-flight registry."""

    def __init__(
        self,
        store: AssignmentStore,
        generator: ContentGenerator,
        language: str = "en",
    ):
        self.store = store
        self.generator = generator
        self.language = language
        self._in_flight: Dict[_CacheKey, "asyncio.Task[MiniCourse]"] = {}

    def is_pending(self, assignment_id: str, milestone_id: str) -> bool:
        return (assignment_id, milestone_id) in self._in_flight

    async def ensure(
        self,
        assignment_id: str,
        milestone_id: str,
        assignment_context: Optional[str] = None,
        roadmap_summary: Optional[str] = None,
    ) -> MiniCourse:
        """
        Return the milestone's mini-course, generating it on first use.

        Raises:
            NotFound: unknown assignment or milestone
            GenerationFailed: generation failed; the milestone stays without a course
        """
        assignment = await self.store.get(assignment_id)
        milestone = assignment.milestone(milestone_id)
        if milestone.mini_course is not None:
            return milestone.mini_course

        key = (assignment_id, milestone_id)
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.create_task(
                self._generate_and_store(
                    assignment_id,
                    milestone,
                    assignment_context or assignment.context,
                    roadmap_summary or assignment.roadmap_summary(),
                )
            )
            self._in_flight[key] = task
            task.add_done_callback(lambda t, key=key: self._release(key, t))
        else:
            logger.debug(
                "Joining in-flight mini-course generation",
                extra={"assignment_id": assignment_id, "milestone_id": milestone_id},
            )
        # Shielded so one cancelled caller does not abort the shared generation
        return await asyncio.shield(task)

    def _release(self, key: _CacheKey, task: "asyncio.Task[MiniCourse]") -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        if not task.cancelled():
            # Mark the exception retrieved even if every waiter was cancelled
            task.exception()

    async def _generate_and_store(
        self,
        assignment_id: str,
        milestone: Milestone,
        assignment_context: str,
        roadmap_summary: str,
    ) -> MiniCourse:
        logger.info(
            "Generating mini-course",
            extra={"assignment_id": assignment_id, "milestone_id": milestone.id},
        )
        prompt = build_mini_course_prompt(
            milestone.title,
            milestone.description,
            assignment_context,
            roadmap_summary,
            language=self.language,
        )
        try:
            payload = await self.generator.generate(prompt, MINI_COURSE_SCHEMA)
        except GenerationFailed:
            logger.warning(
                "Mini-course generation failed",
                extra={"assignment_id": assignment_id, "milestone_id": milestone.id},
            )
            raise

        try:
            course = MiniCourse(
                learning_outcome=payload["learningOutcome"],
                overview=payload["overview"],
                concepts=_normalize_concepts(payload["concepts"]),
                practical_guide=payload["practicalGuide"],
                formative_action=payload["formativeAction"],
                expert_tip=payload["expertTip"],
                mastery_status=MasteryStatus.UNTESTED,
                formative_task_completed=False,
            )
        except ValidationError as exc:
            raise GenerationFailed(
                "mini-course content did not match the expected shape",
                schema_name="mini_course",
            ) from exc

        # Re-read: the snapshot may have changed while we were generating
        current = await self.store.get(assignment_id)
        latest = current.milestone(milestone.id)
        if latest.mini_course is not None:
            return latest.mini_course

        await self.store.replace(
            current.with_milestone(latest.model_copy(update={"mini_course": course})),
            EventType.MINI_COURSE_GENERATED,
            {"milestone_id": milestone.id},
        )
        return course
