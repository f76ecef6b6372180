"""
Request/response schemas for the v1 HTTP API.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from synapse.schemas.assignment import (
    Assignment,
    DebateTurn,
    MasteryStatus,
    RubricScore,
    ScaffoldingTask,
)
from synapse.schemas.common import CamelModel


# ── Assignments ──────────────────────────────────────────────────────────

class MilestoneDraft(CamelModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: str = ""
    estimated_minutes: int = Field(30, ge=0)
    deadline: Optional[datetime] = None


class CreateAssignmentRequest(CamelModel):
    """Create an assignment from an explicit roadmap."""

    title: str = Field(..., min_length=1, max_length=500)
    description: str = ""
    learning_outcome: str = ""
    deadline: datetime
    course: str = ""
    tags: List[str] = []
    rubrics: List[str] = []
    milestones: List[MilestoneDraft] = Field(..., min_length=1)


class AnalyzeRequest(CamelModel):
    text: str = Field(..., min_length=1)
    deadline: Optional[datetime] = None


class FreezeAssessmentResponse(CamelModel):
    frozen: bool
    suppressed: bool
    offer_task: bool
    hours_to_deadline: float


class AssignmentViewResponse(CamelModel):
    assignment: Assignment
    freeze: FreezeAssessmentResponse


class ValidationRequest(CamelModel):
    """A summative assessment result produced elsewhere; stored as-is."""

    overall_score: float
    rubric_scores: List[RubricScore] = []
    strengths: List[str] = []
    weaknesses: List[str] = []
    recommendations: List[str] = []
    alignment_score: float = 0.0
    assessment_date: Optional[datetime] = None


# ── Mini-course / gate ───────────────────────────────────────────────────

class MiniCourseRequest(CamelModel):
    assignment_context: Optional[str] = None
    roadmap_summary: Optional[str] = None


class FormativeGateResponse(CamelModel):
    milestone_id: str
    open: bool


# ── Debate ───────────────────────────────────────────────────────────────

class StartDebateRequest(CamelModel):
    assignment_context: Optional[str] = None


class SubmitTurnRequest(CamelModel):
    text: str = Field(..., min_length=1)


class DebateSessionResponse(CamelModel):
    id: str
    assignment_id: str
    milestone_id: str
    state: str
    transcript: List[DebateTurn]
    running_tension: float
    can_finalize: bool
    verdict: Optional[MasteryStatus] = None


class FinalizeResponse(CamelModel):
    session_id: str
    mastery_status: MasteryStatus
    final_tension: float
    turns: int


# ── Scaffolding ──────────────────────────────────────────────────────────

class ScaffoldingStatusResponse(CamelModel):
    task: Optional[ScaffoldingTask] = None
    remaining_seconds: Optional[int] = None
    running: bool = False
