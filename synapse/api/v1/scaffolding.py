"""
Scaffolding endpoints - academic-freeze micro-tasks and their countdown.
"""

from fastapi import APIRouter, status

from synapse.api.deps import Services
from synapse.schemas.api import ScaffoldingStatusResponse
from synapse.schemas.assignment import Assignment, ScaffoldingTask

router = APIRouter()


async def _status(assignment_id: str, services: Services) -> ScaffoldingStatusResponse:
    assignment = await services.store.get(assignment_id)
    return ScaffoldingStatusResponse(
        task=assignment.current_scaffolding_task,
        remaining_seconds=services.scaffolding.remaining_seconds(assignment_id),
        running=services.scaffolding.is_counting(assignment_id),
    )


@router.post("", response_model=ScaffoldingTask, status_code=status.HTTP_201_CREATED)
async def generate_scaffolding_task(assignment_id: str, services: Services):
    """Generate a new micro-task, replacing any current one."""
    return await services.scaffolding.generate(assignment_id)


@router.get("", response_model=ScaffoldingStatusResponse)
async def get_scaffolding_status(assignment_id: str, services: Services):
    return await _status(assignment_id, services)


@router.post("/start", response_model=ScaffoldingStatusResponse)
async def start_scaffolding_task(assignment_id: str, services: Services):
    await services.scaffolding.start(assignment_id)
    return await _status(assignment_id, services)


@router.post("/complete", response_model=Assignment)
async def complete_scaffolding_task(assignment_id: str, services: Services):
    return await services.scaffolding.complete(assignment_id)


@router.post("/stop", response_model=ScaffoldingStatusResponse)
async def stop_scaffolding_task(assignment_id: str, services: Services):
    """Close the countdown surface; the task stays open and can be restarted."""
    await services.scaffolding.stop(assignment_id)
    return await _status(assignment_id, services)
