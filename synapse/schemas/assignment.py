"""
Assignment domain models.

All models are frozen: every change produces a new object via model_copy(update=...),
so observers can diff the previous and next Assignment safely.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import ConfigDict, Field, PositiveInt, field_validator
from pydantic.alias_generators import to_camel

from synapse.errors import NotFound
from synapse.schemas.common import CamelModel, ensure_aware, utcnow


class TaskStatus(str, Enum):
    """Completion status of a milestone."""
    TODO = "todo"
    COMPLETED = "completed"


class MasteryStatus(str, Enum):
    """Mastery verdict of a mini-course. UNTESTED is only the pre-debate default."""
    UNTESTED = "untested"
    REFINED = "refined"
    PERFECTED = "perfected"


class DebateRole(str, Enum):
    USER = "user"
    MODEL = "model"


class DomainModel(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class DebateTurn(DomainModel):
    """One entry of a debate transcript."""

    role: DebateRole
    text: str
    intellectual_weight: float = Field(..., ge=0, le=100)


class MiniCourse(DomainModel):
    """Generated instructional unit attached to a milestone."""

    learning_outcome: str
    overview: str
    concepts: List[str]
    practical_guide: str
    formative_action: str
    expert_tip: str
    mastery_status: MasteryStatus = MasteryStatus.UNTESTED
    formative_task_completed: bool = False
    debate_history: Optional[List[DebateTurn]] = None


class Milestone(DomainModel):
    """One step of an assignment roadmap."""

    id: str
    title: str
    description: str = ""
    estimated_minutes: int = Field(30, ge=0)
    deadline: Optional[datetime] = None
    status: TaskStatus = TaskStatus.TODO
    mini_course: Optional[MiniCourse] = None

    @field_validator("deadline")
    @classmethod
    def normalize_deadline(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_aware(value)


class ScaffoldingTask(DomainModel):
    """Low-friction recovery task issued during an academic freeze."""

    id: str
    instruction: str
    duration_seconds: PositiveInt
    completed: bool = False


class RubricScore(DomainModel):
    criterion: str
    score: int = Field(..., ge=1, le=4)
    feedback: str = ""


class ValidationResult(DomainModel):
    """Outcome of a summative assessment. Only ever appended to an assignment."""

    overall_score: float
    rubric_scores: List[RubricScore] = []
    strengths: List[str] = []
    weaknesses: List[str] = []
    recommendations: List[str] = []
    alignment_score: float = 0.0
    assessment_date: datetime = Field(default_factory=utcnow)


class Assignment(DomainModel):
    """
    An assignment and its learning roadmap.

    Invariant: overall_progress is the rounded percentage of COMPLETED milestones.
    """

    id: str
    title: str
    description: str = ""
    learning_outcome: str = ""
    deadline: datetime
    course: str = ""
    tags: List[str] = []
    rubrics: List[str] = []
    diagnostic_questions: List[str] = []
    milestones: List[Milestone] = []
    overall_progress: int = Field(0, ge=0, le=100)
    at_risk: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    validation_history: List[ValidationResult] = []
    current_scaffolding_task: Optional[ScaffoldingTask] = None
    clarity_score: int = 0

    @field_validator("deadline", "created_at")
    @classmethod
    def normalize_datetimes(cls, value: datetime) -> datetime:
        return ensure_aware(value)

    @property
    def context(self) -> str:
        """Short assignment context handed to prompts."""
        return f"{self.title}: {self.description}"

    def roadmap_summary(self) -> str:
        """Ordered milestone titles, e.g. '1. Outline -> 2. Draft'."""
        return " -> ".join(f"{i + 1}. {m.title}" for i, m in enumerate(self.milestones))

    def milestone(self, milestone_id: str) -> Milestone:
        for m in self.milestones:
            if m.id == milestone_id:
                return m
        raise NotFound(f"Milestone {milestone_id} not found in assignment {self.id}")

    def with_milestone(self, milestone: Milestone) -> "Assignment":
        """Copy of this assignment with one milestone replaced (matched by id)."""
        self.milestone(milestone.id)
        milestones = [milestone if m.id == milestone.id else m for m in self.milestones]
        return self.model_copy(update={"milestones": milestones})
