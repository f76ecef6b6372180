"""
API v1 routes.
"""

from fastapi import APIRouter

from synapse.api.v1 import assignments, debate, mini_course, scaffolding

router = APIRouter()

router.include_router(assignments.router, prefix="/assignments", tags=["Assignments"])
router.include_router(
    mini_course.router,
    prefix="/assignments/{assignment_id}/milestones/{milestone_id}",
    tags=["Mini-courses"],
)
router.include_router(debate.router, tags=["Debate"])
router.include_router(
    scaffolding.router,
    prefix="/assignments/{assignment_id}/scaffolding",
    tags=["Scaffolding"],
)
