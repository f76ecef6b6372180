"""
Debate engine - Socratic sparring sessions that decide a milestone's mastery verdict.

Session lifecycle: NOT_STARTED -> OPEN -> CONCLUDED.

- start() requires the formative gate to be open and seeds the transcript with
  the model's opening challenge.
- submit() exchanges one learner turn for one model turn. Nothing is appended
  unless the model reply was generated successfully.
- finalize() resolves the running tension into a verdict and writes it, with the
  full transcript, into the milestone's mini-course.

Sessions live in memory only. Discarding one leaves the assignment untouched.
A concluded session is dropped; only its id and verdict are remembered, in a
bounded ledger, so late calls still fail with SessionConcluded.
"""

import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from synapse.ai.generator import ContentGenerator
from synapse.ai.prompts import OPENING_CHALLENGE, build_debate_prompt
from synapse.ai.result_schemas import DEBATE_TURN_SCHEMA
from synapse.engines.mastery.resolver import MasteryResolver
from synapse.engines.mastery.scoring import RandomDriftScoring, ScoringStrategy, clamp_weight
from synapse.errors import GateClosed, GenerationFailed, InvalidState, NotFound, SessionConcluded
from synapse.kernel.models.event_log import EventType
from synapse.kernel.store import AssignmentStore
from synapse.logging_config import get_logger
from synapse.schemas.assignment import DebateRole, DebateTurn, MasteryStatus
from synapse.schemas.common import utcnow

logger = get_logger(__name__)


class DebateState(str, Enum):
    NOT_STARTED = "not_started"
    OPEN = "open"
    CONCLUDED = "concluded"


@dataclass
class DebateSession:
    """In-memory state of one debate, owned by a single UI surface."""

    id: str
    assignment_id: str
    milestone_id: str
    milestone_title: str
    formative_action: str
    assignment_context: str
    finalize_threshold: float = 75.0
    state: DebateState = DebateState.NOT_STARTED
    transcript: List[DebateTurn] = field(default_factory=list)
    running_tension: float = 0.0
    verdict: Optional[MasteryStatus] = None
    turn_in_flight: bool = False
    started_at: datetime = field(default_factory=utcnow)

    @property
    def can_finalize(self) -> bool:
        """Advisory only; finalize() accepts any tension."""
        return self.running_tension > self.finalize_threshold


class DebateEngine:
    """Creates, advances and concludes debate sessions."""

    CONCLUDED_MEMORY = 1024

    def __init__(
        self,
        store: AssignmentStore,
        generator: ContentGenerator,
        scoring: Optional[ScoringStrategy] = None,
        language: str = "en",
        opening_weight: float = 50.0,
        finalize_threshold: float = 75.0,
        perfected_threshold: float = MasteryResolver.PERFECTED_THRESHOLD,
    ):
        self.store = store
        self.generator = generator
        self.scoring = scoring or RandomDriftScoring()
        self.language = language
        self.opening_weight = clamp_weight(opening_weight)
        self.finalize_threshold = finalize_threshold
        self.perfected_threshold = perfected_threshold
        self._sessions: Dict[str, DebateSession] = {}
        self._concluded: "OrderedDict[str, MasteryStatus]" = OrderedDict()

    def get(self, session_id: str) -> DebateSession:
        session = self._sessions.get(session_id)
        if session is not None:
            return session
        verdict = self._concluded.get(session_id)
        if verdict is not None:
            raise SessionConcluded(
                f"Debate session {session_id} is concluded as {verdict.value}"
            )
        raise NotFound(f"Debate session {session_id} not found")

    def can_finalize(self, session_id: str) -> bool:
        return self.get(session_id).can_finalize

    def discard(self, session_id: str) -> None:
        """Drop a session without persisting anything."""
        self._concluded.pop(session_id, None)
        session = self._sessions.pop(session_id, None)
        if session is not None:
            logger.info(
                "Debate session discarded",
                extra={"session_id": session_id, "state": session.state.value},
            )

    async def start(
        self,
        assignment_id: str,
        milestone_id: str,
        assignment_context: Optional[str] = None,
    ) -> DebateSession:
        """
        Open a session and ask the model for its opening challenge.

        Raises:
            GateClosed: no mini-course yet, or its formative action is not done
            InvalidState: the mini-course already carries a verdict
            GenerationFailed: the opening challenge could not be generated
        """
        assignment = await self.store.get(assignment_id)
        milestone = assignment.milestone(milestone_id)
        course = milestone.mini_course
        if course is None or not course.formative_task_completed:
            raise GateClosed(milestone_id)
        if course.mastery_status != MasteryStatus.UNTESTED:
            raise InvalidState(
                f"Milestone {milestone_id} already resolved as {course.mastery_status.value}"
            )

        session = DebateSession(
            id=str(uuid.uuid4()),
            assignment_id=assignment_id,
            milestone_id=milestone_id,
            milestone_title=milestone.title,
            formative_action=course.formative_action,
            assignment_context=assignment_context or assignment.context,
            finalize_threshold=self.finalize_threshold,
        )
        reply = await self._reply(session, OPENING_CHALLENGE)

        # The opener carries a fixed seed weight and does not move the running tension
        session.transcript.append(
            DebateTurn(role=DebateRole.MODEL, text=reply, intellectual_weight=self.opening_weight)
        )
        session.state = DebateState.OPEN
        self._sessions[session.id] = session

        logger.info(
            "Debate started",
            extra={
                "session_id": session.id,
                "assignment_id": assignment_id,
                "milestone_id": milestone_id,
            },
        )
        return session

    async def submit(self, session_id: str, user_text: str) -> DebateSession:
        """
        Send one learner turn and append it together with the scored model reply.

        On GenerationFailed the transcript is unchanged and the session stays OPEN.
        """
        session = self.get(session_id)
        if session.state == DebateState.CONCLUDED:
            raise SessionConcluded(f"Debate session {session_id} is concluded")
        if session.state != DebateState.OPEN:
            raise InvalidState(f"Debate session {session_id} is not open")
        text = (user_text or "").strip()
        if not text:
            raise InvalidState("Debate turn text must not be empty")
        if session.turn_in_flight:
            raise InvalidState(f"Debate session {session_id} already has a turn in flight")

        session.turn_in_flight = True
        try:
            reply = await self._reply(session, text)
        finally:
            session.turn_in_flight = False

        # finalize() may have run while the reply was generating
        if session.state != DebateState.OPEN:
            raise SessionConcluded(f"Debate session {session_id} is concluded")

        user_turn = DebateTurn(role=DebateRole.USER, text=text, intellectual_weight=0)
        weight = clamp_weight(
            self.scoring.next_tension(
                session.running_tension, [*session.transcript, user_turn], reply
            )
        )
        session.transcript.append(user_turn)
        session.transcript.append(
            DebateTurn(role=DebateRole.MODEL, text=reply, intellectual_weight=weight)
        )
        session.running_tension = weight

        logger.debug(
            "Debate turn scored",
            extra={"session_id": session_id, "running_tension": weight},
        )
        return session

    async def finalize(self, session_id: str) -> MasteryStatus:
        """Conclude the session and write the verdict and transcript to the mini-course."""
        session = self.get(session_id)
        if session.state == DebateState.CONCLUDED:
            raise SessionConcluded(f"Debate session {session_id} is already concluded")
        if session.state != DebateState.OPEN:
            raise InvalidState(f"Debate session {session_id} is not open")

        verdict = MasteryResolver.resolve(session.running_tension, self.perfected_threshold)
        session.state = DebateState.CONCLUDED
        try:
            assignment = await self.store.get(session.assignment_id)
            milestone = assignment.milestone(session.milestone_id)
            course = milestone.mini_course
            if course is None:
                raise InvalidState(f"Milestone {session.milestone_id} has no mini-course")
            if course.mastery_status != MasteryStatus.UNTESTED:
                raise InvalidState(
                    f"Milestone {session.milestone_id} already resolved as "
                    f"{course.mastery_status.value}"
                )
            updated_course = course.model_copy(
                update={
                    "mastery_status": verdict,
                    "debate_history": list(session.transcript),
                }
            )
            await self.store.replace(
                assignment.with_milestone(milestone.model_copy(update={"mini_course": updated_course})),
                EventType.DEBATE_CONCLUDED,
                {
                    "milestone_id": session.milestone_id,
                    "mastery_status": verdict,
                    "final_tension": session.running_tension,
                    "turns": len(session.transcript),
                },
            )
        except Exception:
            session.state = DebateState.OPEN
            raise

        session.verdict = verdict
        self._conclude(session)
        logger.info(
            "Debate concluded",
            extra={
                "session_id": session_id,
                "milestone_id": session.milestone_id,
                "mastery_status": verdict.value,
                "final_tension": session.running_tension,
            },
        )
        return verdict

    def _conclude(self, session: DebateSession) -> None:
        self._sessions.pop(session.id, None)
        self._concluded[session.id] = session.verdict
        while len(self._concluded) > self.CONCLUDED_MEMORY:
            self._concluded.popitem(last=False)

    async def _reply(self, session: DebateSession, message: str) -> str:
        prompt = build_debate_prompt(
            session.milestone_title,
            session.formative_action,
            session.assignment_context,
            session.transcript,
            message,
            language=self.language,
        )
        payload = await self.generator.generate(prompt, DEBATE_TURN_SCHEMA)
        reply = payload.get("reply")
        if not isinstance(reply, str) or not reply.strip():
            raise GenerationFailed("debate reply is empty", schema_name="debate_turn")
        return reply.strip()

    def teardown(self) -> None:
        self._sessions.clear()
        self._concluded.clear()
