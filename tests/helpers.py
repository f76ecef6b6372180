"""
Test doubles and builders shared across unit and integration tests.
"""

import asyncio
import json
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence, Union

from synapse.ai.generator import ContentGenerator
from synapse.ai.result_schemas import JsonSchema, schema_name
from synapse.engines.mastery.scoring import ScoringStrategy
from synapse.errors import GenerationFailed
from synapse.schemas.assignment import (
    Assignment,
    DebateTurn,
    MiniCourse,
    Milestone,
    TaskStatus,
)

MINI_COURSE_PAYLOAD: Dict[str, Any] = {
    "learningOutcome": "Evaluate competing definitions of market failure.",
    "overview": "Why market failure matters for public policy.",
    "concepts": ["Externality", "Public good", {"term": "Information asymmetry"}],
    "practicalGuide": "1. Define. 2. Compare. 3. Apply.",
    "formativeAction": "Classify three real cases by failure type.",
    "expertTip": "Most cases mix more than one failure type.",
}

Scripted = Union[Dict[str, Any], str, Exception]


class ScriptedGenerator(ContentGenerator):
    """
    Generator that replays queued responses per schema name.

    A queued dict is returned as JSON, a str is returned raw, an Exception is raised.
    When the queue for a schema is empty, the schema's default is used.
    """

    def __init__(
        self,
        defaults: Optional[Dict[str, Scripted]] = None,
        timeout_seconds: Optional[float] = None,
    ):
        super().__init__(timeout_seconds=timeout_seconds)
        self.defaults: Dict[str, Scripted] = {
            "mini_course": MINI_COURSE_PAYLOAD,
            "debate_turn": {"reply": "Defend that claim with evidence."},
            "scaffolding_task": {
                "instruction": "List 3 keywords related to your topic.",
                "durationSeconds": 120,
            },
        }
        self.defaults.update(defaults or {})
        self.queues: Dict[str, List[Scripted]] = {}
        self.calls: List[Dict[str, str]] = []
        self.release: Optional[asyncio.Event] = None

    def queue(self, name: str, *responses: Scripted) -> None:
        self.queues.setdefault(name, []).extend(responses)

    def calls_for(self, name: str) -> int:
        return sum(1 for call in self.calls if call["schema"] == name)

    async def _complete(self, prompt: str, schema: JsonSchema) -> str:
        name = schema_name(schema)
        self.calls.append({"schema": name, "prompt": prompt})
        if self.release is not None:
            await self.release.wait()
        queue = self.queues.get(name)
        response = queue.pop(0) if queue else self.defaults.get(name)
        if response is None:
            raise GenerationFailed("nothing scripted", schema_name=name)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, str):
            return response
        return json.dumps(response)


class StepScoring(ScoringStrategy):
    """Deterministic scoring: each model reply moves tension by the next scripted step."""

    def __init__(self, steps: Sequence[float]):
        self.steps = list(steps)

    def next_tension(self, current: float, transcript: Sequence[DebateTurn], reply: str) -> float:
        step = self.steps.pop(0) if self.steps else 0.0
        return current + step


class FlakyRepository:
    """In-memory stand-in for AssignmentRepository whose next `failures` saves raise."""

    def __init__(self, failures: int = 0):
        self.failures = failures
        self.saved: Dict[str, Assignment] = {}
        self.events: List[str] = []

    async def load(self, assignment_id: str) -> Optional[Assignment]:
        return self.saved.get(assignment_id)

    async def save(self, assignment: Assignment, event_type, payload=None) -> None:
        await asyncio.sleep(0)
        if self.failures:
            self.failures -= 1
            raise RuntimeError("database unavailable")
        self.saved[assignment.id] = assignment
        self.events.append(event_type.value)


def make_milestone(title: str = "Milestone", **overrides: Any) -> Milestone:
    data: Dict[str, Any] = {
        "id": str(uuid.uuid4()),
        "title": title,
        "description": f"{title} description",
        "estimated_minutes": 30,
    }
    data.update(overrides)
    return Milestone(**data)


def make_assignment(
    milestones: int = 4,
    completed: int = 0,
    deadline_in: timedelta = timedelta(days=7),
    **overrides: Any,
) -> Assignment:
    items = [
        make_milestone(
            f"Step {i + 1}",
            status=TaskStatus.COMPLETED if i < completed else TaskStatus.TODO,
        )
        for i in range(milestones)
    ]
    progress = round(100 * completed / milestones) if milestones else 0
    data: Dict[str, Any] = {
        "id": str(uuid.uuid4()),
        "title": "Market failure essay",
        "description": "Write 2000 words on market failure.",
        "learning_outcome": "Analyze market failure.",
        "deadline": datetime.now(timezone.utc) + deadline_in,
        "milestones": items,
        "overall_progress": progress,
    }
    data.update(overrides)
    return Assignment(**data)


def make_mini_course(formative_done: bool = False, **overrides: Any) -> MiniCourse:
    data: Dict[str, Any] = {
        "learning_outcome": "Analyze.",
        "overview": "Overview.",
        "concepts": ["A", "B"],
        "practical_guide": "Guide.",
        "formative_action": "Summarize the reading.",
        "expert_tip": "Tip.",
        "formative_task_completed": formative_done,
    }
    data.update(overrides)
    return MiniCourse(**data)


