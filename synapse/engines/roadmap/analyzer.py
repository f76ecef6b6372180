"""
Roadmap analyzer - turns raw assignment text into an Assignment with a milestone roadmap.

The model only structures the work; it is told never to solve it.
"""

import uuid
from datetime import datetime
from typing import Any, List, Optional

from pydantic import TypeAdapter, ValidationError

from synapse.ai.generator import ContentGenerator
from synapse.ai.prompts import build_roadmap_prompt
from synapse.ai.result_schemas import ROADMAP_SCHEMA
from synapse.errors import GenerationFailed, InvalidState
from synapse.logging_config import get_logger
from synapse.schemas.assignment import Assignment, Milestone, TaskStatus

logger = get_logger(__name__)

_datetime_adapter = TypeAdapter(datetime)


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    try:
        return _datetime_adapter.validate_python(value)
    except ValidationError:
        return None


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v not in (None, "")]


class RoadmapAnalyzer:
    """Fourth generation call site: assignment brief -> structured roadmap."""

    def __init__(self, generator: ContentGenerator, language: str = "en"):
        self.generator = generator
        self.language = language

    async def analyze(self, text: str, deadline: Optional[datetime] = None) -> Assignment:
        """
        Analyze an assignment brief.

        Args:
            text: the assignment brief as given to the student
            deadline: overrides the deadline the model extracted

        Returns:
            A new, unsaved Assignment: fresh ids, every milestone TODO, zero progress.
        """
        if not (text or "").strip():
            raise InvalidState("Assignment text must not be empty")

        payload = await self.generator.generate(
            build_roadmap_prompt(text.strip(), language=self.language), ROADMAP_SCHEMA
        )

        resolved_deadline = deadline or _parse_datetime(payload.get("deadline"))
        if resolved_deadline is None:
            raise GenerationFailed("no usable deadline in roadmap", schema_name="roadmap")

        raw_milestones = payload.get("milestones")
        if not isinstance(raw_milestones, list):
            raise GenerationFailed("milestones is not a list", schema_name="roadmap")

        try:
            milestones = [
                Milestone(
                    id=str(uuid.uuid4()),
                    title=item["title"],
                    description=item.get("description", ""),
                    estimated_minutes=int(item.get("estimatedMinutes") or 30),
                    deadline=_parse_datetime(item.get("deadline")),
                    status=TaskStatus.TODO,
                )
                for item in raw_milestones
            ]
            assignment = Assignment(
                id=str(uuid.uuid4()),
                title=payload["title"],
                description=payload.get("description", ""),
                learning_outcome=payload.get("learningOutcome", ""),
                deadline=resolved_deadline,
                course=payload.get("course") or "",
                rubrics=_string_list(payload.get("rubrics")),
                diagnostic_questions=_string_list(payload.get("diagnosticQuestions")),
                milestones=milestones,
                overall_progress=0,
                at_risk=False,
            )
        except (KeyError, TypeError, ValueError) as exc:
            # pydantic's ValidationError is a ValueError
            raise GenerationFailed(
                "roadmap content did not match the expected shape", schema_name="roadmap"
            ) from exc

        logger.info(
            "Roadmap analyzed",
            extra={"assignment_id": assignment.id, "milestones": len(milestones)},
        )
        return assignment
