"""
Assignment endpoints - creation, roadmap analysis, view, milestone toggle, validations.
"""

import uuid
from typing import List

from fastapi import APIRouter, status

from synapse.api.deps import Services
from synapse.schemas.api import (
    AnalyzeRequest,
    AssignmentViewResponse,
    CreateAssignmentRequest,
    FreezeAssessmentResponse,
    ValidationRequest,
)
from synapse.schemas.assignment import Assignment, Milestone, ValidationResult
from synapse.schemas.common import utcnow

router = APIRouter()


@router.post("", response_model=Assignment, status_code=status.HTTP_201_CREATED)
async def create_assignment(body: CreateAssignmentRequest, services: Services):
    """Create an assignment from an explicit roadmap."""
    assignment = Assignment(
        id=str(uuid.uuid4()),
        title=body.title,
        description=body.description,
        learning_outcome=body.learning_outcome,
        deadline=body.deadline,
        course=body.course,
        tags=body.tags,
        rubrics=body.rubrics,
        milestones=[
            Milestone(
                id=str(uuid.uuid4()),
                title=draft.title,
                description=draft.description,
                estimated_minutes=draft.estimated_minutes,
                deadline=draft.deadline,
            )
            for draft in body.milestones
        ],
    )
    return await services.store.create(assignment)


@router.post("/analyze", response_model=Assignment, status_code=status.HTTP_201_CREATED)
async def analyze_assignment(body: AnalyzeRequest, services: Services):
    """Analyze an assignment brief into a roadmap and store it."""
    assignment = await services.roadmaps.analyze(body.text, deadline=body.deadline)
    return await services.store.create(assignment)


@router.get("/{assignment_id}", response_model=AssignmentViewResponse)
async def get_assignment(assignment_id: str, services: Services):
    """Current snapshot plus the academic-freeze assessment (recomputed on every view)."""
    assignment = await services.scaffolding.observe(assignment_id)
    assessment = services.scaffolding.assess(assignment)
    return AssignmentViewResponse(
        assignment=assignment,
        freeze=FreezeAssessmentResponse(
            frozen=assessment.frozen,
            suppressed=assessment.suppressed,
            offer_task=assessment.offer_task,
            hours_to_deadline=assessment.hours_to_deadline,
        ),
    )


@router.get("/{assignment_id}/milestones", response_model=List[Milestone])
async def list_milestones(assignment_id: str, services: Services):
    return await services.milestones.milestones(assignment_id)


@router.post("/{assignment_id}/milestones/{milestone_id}/toggle", response_model=Assignment)
async def toggle_milestone(assignment_id: str, milestone_id: str, services: Services):
    return await services.milestones.toggle(assignment_id, milestone_id)


@router.post(
    "/{assignment_id}/validations",
    response_model=Assignment,
    status_code=status.HTTP_201_CREATED,
)
async def append_validation(assignment_id: str, body: ValidationRequest, services: Services):
    """Append a summative assessment result to the assignment's history."""
    result = ValidationResult(
        overall_score=body.overall_score,
        rubric_scores=body.rubric_scores,
        strengths=body.strengths,
        weaknesses=body.weaknesses,
        recommendations=body.recommendations,
        alignment_score=body.alignment_score,
        assessment_date=body.assessment_date or utcnow(),
    )
    return await services.store.append_validation(assignment_id, result)
