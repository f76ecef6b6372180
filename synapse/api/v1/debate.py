"""
Debate endpoints - start, turns, finalize, discard.
"""

from typing import Optional

from fastapi import APIRouter, Response, status

from synapse.api.deps import Services
from synapse.engines.mastery import DebateSession
from synapse.schemas.api import (
    DebateSessionResponse,
    FinalizeResponse,
    StartDebateRequest,
    SubmitTurnRequest,
)

router = APIRouter()


def _session_response(session: DebateSession) -> DebateSessionResponse:
    return DebateSessionResponse(
        id=session.id,
        assignment_id=session.assignment_id,
        milestone_id=session.milestone_id,
        state=session.state.value,
        transcript=list(session.transcript),
        running_tension=session.running_tension,
        can_finalize=session.can_finalize,
        verdict=session.verdict,
    )


@router.post(
    "/assignments/{assignment_id}/milestones/{milestone_id}/debate",
    response_model=DebateSessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def start_debate(
    assignment_id: str,
    milestone_id: str,
    services: Services,
    body: Optional[StartDebateRequest] = None,
):
    """Open a debate session. Requires the formative gate to be open."""
    session = await services.debates.start(
        assignment_id,
        milestone_id,
        assignment_context=body.assignment_context if body else None,
    )
    return _session_response(session)


@router.get("/debates/{session_id}", response_model=DebateSessionResponse)
async def get_debate(session_id: str, services: Services):
    return _session_response(services.debates.get(session_id))


@router.post("/debates/{session_id}/turns", response_model=DebateSessionResponse)
async def submit_turn(session_id: str, body: SubmitTurnRequest, services: Services):
    session = await services.debates.submit(session_id, body.text)
    return _session_response(session)


@router.post("/debates/{session_id}/finalize", response_model=FinalizeResponse)
async def finalize_debate(session_id: str, services: Services):
    """Conclude the debate and record the mastery verdict."""
    session = services.debates.get(session_id)
    verdict = await services.debates.finalize(session_id)
    return FinalizeResponse(
        session_id=session_id,
        mastery_status=verdict,
        final_tension=session.running_tension,
        turns=len(session.transcript),
    )


@router.delete("/debates/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def discard_debate(session_id: str, services: Services):
    """Close the debate surface without finalizing; nothing is persisted."""
    services.debates.discard(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
