"""
Mini-course endpoints - lazy generation and the formative gate.
"""

from typing import Optional

from fastapi import APIRouter

from synapse.api.deps import Services
from synapse.schemas.api import FormativeGateResponse, MiniCourseRequest
from synapse.schemas.assignment import Assignment, MiniCourse

router = APIRouter()


@router.post("/mini-course", response_model=MiniCourse)
async def ensure_mini_course(
    assignment_id: str,
    milestone_id: str,
    services: Services,
    body: Optional[MiniCourseRequest] = None,
):
    """Return the cached mini-course, generating it on first request."""
    body = body or MiniCourseRequest()
    return await services.mini_courses.ensure(
        assignment_id,
        milestone_id,
        assignment_context=body.assignment_context,
        roadmap_summary=body.roadmap_summary,
    )


@router.get("/formative", response_model=FormativeGateResponse)
async def get_formative_gate(assignment_id: str, milestone_id: str, services: Services):
    is_open = await services.gate.is_open(assignment_id, milestone_id)
    return FormativeGateResponse(milestone_id=milestone_id, open=is_open)


@router.post("/formative/complete", response_model=Assignment)
async def complete_formative(assignment_id: str, milestone_id: str, services: Services):
    """Mark the formative action done; unlocks the debate."""
    return await services.gate.complete(assignment_id, milestone_id)
