"""
Pydantic schemas for the mastery core and its API.
"""

from synapse.schemas.assignment import (
    Assignment,
    DebateRole,
    DebateTurn,
    MasteryStatus,
    Milestone,
    MiniCourse,
    RubricScore,
    ScaffoldingTask,
    TaskStatus,
    ValidationResult,
)
from synapse.schemas.common import CamelModel, ErrorResponse, HealthResponse

__all__ = [
    "Assignment",
    "DebateRole",
    "DebateTurn",
    "MasteryStatus",
    "Milestone",
    "MiniCourse",
    "RubricScore",
    "ScaffoldingTask",
    "TaskStatus",
    "ValidationResult",
    "CamelModel",
    "ErrorResponse",
    "HealthResponse",
]
