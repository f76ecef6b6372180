"""Unit tests for DebateEngine, MasteryResolver and scoring strategies."""

import random

import pytest

from helpers import FlakyRepository, StepScoring, make_assignment, make_mini_course
from synapse.engines.mastery import (
    DebateEngine,
    DebateState,
    MasteryResolver,
    RandomDriftScoring,
    clamp_weight,
)
from synapse.errors import GateClosed, GenerationFailed, InvalidState, NotFound, SessionConcluded
from synapse.kernel.store import AssignmentStore
from synapse.schemas.assignment import DebateRole, MasteryStatus


async def _debatable(store, formative_done: bool = True, **course_overrides):
    """Store an assignment whose first milestone has a mini-course."""
    assignment = make_assignment(milestones=2)
    milestone = assignment.milestones[0].model_copy(
        update={"mini_course": make_mini_course(formative_done=formative_done, **course_overrides)}
    )
    assignment = await store.create(assignment.with_milestone(milestone))
    return assignment, milestone.id


class TestMasteryResolver:
    """Verdict boundary is strictly above 85."""

    def test_boundaries(self):
        assert MasteryResolver.resolve(86) == MasteryStatus.PERFECTED
        assert MasteryResolver.resolve(85) == MasteryStatus.REFINED
        assert MasteryResolver.resolve(0) == MasteryStatus.REFINED

    def test_just_above_threshold(self):
        assert MasteryResolver.resolve(85.01) == MasteryStatus.PERFECTED
        assert MasteryResolver.resolve(100) == MasteryStatus.PERFECTED

    def test_never_untested(self):
        for tension in range(0, 101):
            assert MasteryResolver.resolve(tension) != MasteryStatus.UNTESTED


class TestScoring:
    def test_clamp(self):
        assert clamp_weight(-3) == 0.0
        assert clamp_weight(140) == 100.0
        assert clamp_weight(42.5) == 42.5

    def test_random_drift_stays_in_band(self):
        scoring = RandomDriftScoring(rng=random.Random(1234))
        tension = 50.0
        for _ in range(200):
            nxt = scoring.next_tension(tension, [], "reply")
            assert 0.0 <= nxt <= 100.0
            assert tension - 5.0 <= nxt <= tension + 15.0 or nxt in (0.0, 100.0)
            tension = nxt

    def test_invalid_band(self):
        with pytest.raises(ValueError):
            RandomDriftScoring(low=10, high=-10)


class TestDebateStart:
    @pytest.mark.asyncio
    async def test_gate_closed_appends_nothing(self, store, generator):
        assignment, milestone_id = await _debatable(store, formative_done=False)
        engine = DebateEngine(store, generator)

        with pytest.raises(GateClosed):
            await engine.start(assignment.id, milestone_id)

        assert generator.calls == []
        course = (await store.get(assignment.id)).milestone(milestone_id).mini_course
        assert course.debate_history is None

    @pytest.mark.asyncio
    async def test_gate_closed_without_mini_course(self, store, generator):
        assignment = await store.create(make_assignment(milestones=1))
        with pytest.raises(GateClosed):
            await DebateEngine(store, generator).start(assignment.id, assignment.milestones[0].id)

    @pytest.mark.asyncio
    async def test_opening_challenge(self, store, generator):
        assignment, milestone_id = await _debatable(store)
        generator.queue("debate_turn", {"reply": "What is a public good, precisely?"})

        session = await DebateEngine(store, generator).start(assignment.id, milestone_id)

        assert session.state == DebateState.OPEN
        assert len(session.transcript) == 1
        opener = session.transcript[0]
        assert opener.role == DebateRole.MODEL
        assert opener.text == "What is a public good, precisely?"
        assert opener.intellectual_weight == 50
        assert session.running_tension == 0
        assert session.can_finalize is False
        assert "Challenge my understanding" in generator.calls[0]["prompt"]
        assert "Summarize the reading." in generator.calls[0]["prompt"]

    @pytest.mark.asyncio
    async def test_opening_failure_creates_no_session(self, store, generator):
        assignment, milestone_id = await _debatable(store)
        generator.queue("debate_turn", GenerationFailed("timeout", schema_name="debate_turn"))
        engine = DebateEngine(store, generator)

        with pytest.raises(GenerationFailed):
            await engine.start(assignment.id, milestone_id)
        assert engine._sessions == {}

    @pytest.mark.asyncio
    async def test_already_resolved_cannot_start(self, store, generator):
        assignment, milestone_id = await _debatable(
            store, mastery_status=MasteryStatus.REFINED
        )
        with pytest.raises(InvalidState):
            await DebateEngine(store, generator).start(assignment.id, milestone_id)


class TestDebateTurns:
    @pytest.mark.asyncio
    async def test_turn_weights(self, store, generator):
        """User turns weigh 0; model turns carry the running tension."""
        assignment, milestone_id = await _debatable(store)
        engine = DebateEngine(store, generator, scoring=StepScoring([10, 25]))
        session = await engine.start(assignment.id, milestone_id)

        await engine.submit(session.id, "Externalities are costs borne by third parties.")
        await engine.submit(session.id, "Pollution is the textbook case.")

        roles = [t.role for t in session.transcript]
        assert roles == [
            DebateRole.MODEL,
            DebateRole.USER,
            DebateRole.MODEL,
            DebateRole.USER,
            DebateRole.MODEL,
        ]
        assert [t.intellectual_weight for t in session.transcript] == [50, 0, 10, 0, 35]
        assert session.running_tension == 35

    @pytest.mark.asyncio
    async def test_weights_always_in_range(self, store, generator):
        assignment, milestone_id = await _debatable(store)
        engine = DebateEngine(
            store, generator, scoring=RandomDriftScoring(rng=random.Random(99))
        )
        session = await engine.start(assignment.id, milestone_id)

        for i in range(25):
            await engine.submit(session.id, f"Argument {i}")

        assert len(session.transcript) == 51
        for turn in session.transcript:
            assert 0 <= turn.intellectual_weight <= 100
            if turn.role == DebateRole.USER:
                assert turn.intellectual_weight == 0
        assert session.running_tension == session.transcript[-1].intellectual_weight

    @pytest.mark.asyncio
    async def test_strategy_output_is_clamped(self, store, generator):
        assignment, milestone_id = await _debatable(store)
        engine = DebateEngine(store, generator, scoring=StepScoring([500, -1000]))
        session = await engine.start(assignment.id, milestone_id)

        await engine.submit(session.id, "First")
        assert session.running_tension == 100
        await engine.submit(session.id, "Second")
        assert session.running_tension == 0

    @pytest.mark.asyncio
    async def test_empty_text_rejected(self, store, generator):
        assignment, milestone_id = await _debatable(store)
        engine = DebateEngine(store, generator)
        session = await engine.start(assignment.id, milestone_id)

        with pytest.raises(InvalidState):
            await engine.submit(session.id, "   ")
        assert len(session.transcript) == 1

    @pytest.mark.asyncio
    async def test_generation_failure_keeps_session_open(self, store, generator):
        assignment, milestone_id = await _debatable(store)
        engine = DebateEngine(store, generator, scoring=StepScoring([20]))
        session = await engine.start(assignment.id, milestone_id)
        generator.queue("debate_turn", GenerationFailed("rate limited", schema_name="debate_turn"))

        with pytest.raises(GenerationFailed):
            await engine.submit(session.id, "My argument")

        assert session.state == DebateState.OPEN
        assert len(session.transcript) == 1
        assert session.running_tension == 0
        assert session.turn_in_flight is False

        await engine.submit(session.id, "My argument")
        assert len(session.transcript) == 3
        assert session.running_tension == 20

    @pytest.mark.asyncio
    async def test_transcript_sent_as_continuation(self, store, generator):
        assignment, milestone_id = await _debatable(store)
        generator.queue("debate_turn", {"reply": "Opening salvo."})
        engine = DebateEngine(store, generator)
        session = await engine.start(assignment.id, milestone_id)

        await engine.submit(session.id, "Counterpoint.")

        prompt = generator.calls[-1]["prompt"]
        assert "CHALLENGER: Opening salvo." in prompt
        assert prompt.rstrip().endswith('field "reply".')
        assert "STUDENT: Counterpoint." in prompt

    @pytest.mark.asyncio
    async def test_unknown_session(self, store, generator):
        with pytest.raises(NotFound):
            await DebateEngine(store, generator).submit("missing", "hello")


class TestDebateFinalize:
    @pytest.mark.asyncio
    async def test_tension_ninety_is_perfected(self, store, generator):
        assignment, milestone_id = await _debatable(store)
        engine = DebateEngine(store, generator, scoring=StepScoring([40, 30, 20]))
        session = await engine.start(assignment.id, milestone_id)
        for text in ("one", "two"):
            await engine.submit(session.id, text)
        assert session.can_finalize is False
        await engine.submit(session.id, "three")
        assert session.running_tension == 90
        assert engine.can_finalize(session.id) is True

        verdict = await engine.finalize(session.id)

        assert verdict == MasteryStatus.PERFECTED
        course = (await store.get(assignment.id)).milestone(milestone_id).mini_course
        assert course.mastery_status == MasteryStatus.PERFECTED
        assert len(course.debate_history) == 7
        assert course.debate_history == session.transcript
        assert course.debate_history[0].intellectual_weight == 50

    @pytest.mark.asyncio
    async def test_finalize_below_hint_is_refined(self, store, generator):
        """canFinalize is advisory: finalize works at any tension."""
        assignment, milestone_id = await _debatable(store)
        engine = DebateEngine(store, generator, scoring=StepScoring([12]))
        session = await engine.start(assignment.id, milestone_id)
        await engine.submit(session.id, "A weak argument")

        assert session.can_finalize is False
        assert await engine.finalize(session.id) == MasteryStatus.REFINED

    @pytest.mark.asyncio
    async def test_finalize_with_opener_only(self, store, generator):
        assignment, milestone_id = await _debatable(store)
        engine = DebateEngine(store, generator)
        session = await engine.start(assignment.id, milestone_id)

        assert await engine.finalize(session.id) == MasteryStatus.REFINED
        course = (await store.get(assignment.id)).milestone(milestone_id).mini_course
        assert len(course.debate_history) == 1

    @pytest.mark.asyncio
    async def test_concluded_session_rejects_turns(self, store, generator):
        assignment, milestone_id = await _debatable(store)
        engine = DebateEngine(store, generator)
        session = await engine.start(assignment.id, milestone_id)
        await engine.finalize(session.id)

        assert session.state == DebateState.CONCLUDED
        with pytest.raises(SessionConcluded):
            await engine.submit(session.id, "one more thing")
        with pytest.raises(SessionConcluded):
            await engine.finalize(session.id)

    @pytest.mark.asyncio
    async def test_second_session_cannot_overwrite_verdict(self, store, generator):
        assignment, milestone_id = await _debatable(store)
        engine = DebateEngine(store, generator, scoring=StepScoring([95]))
        first = await engine.start(assignment.id, milestone_id)
        second = await engine.start(assignment.id, milestone_id)
        await engine.submit(first.id, "strong")
        assert await engine.finalize(first.id) == MasteryStatus.PERFECTED

        with pytest.raises(InvalidState):
            await engine.finalize(second.id)
        assert second.state == DebateState.OPEN
        course = (await store.get(assignment.id)).milestone(milestone_id).mini_course
        assert course.mastery_status == MasteryStatus.PERFECTED

    @pytest.mark.asyncio
    async def test_failed_save_allows_finalize_retry(self, generator):
        repository = FlakyRepository()
        store = AssignmentStore(repository)
        assignment, milestone_id = await _debatable(store)
        engine = DebateEngine(store, generator, scoring=StepScoring([30]))
        session = await engine.start(assignment.id, milestone_id)
        await engine.submit(session.id, "argument")
        repository.failures = 1

        with pytest.raises(RuntimeError):
            await engine.finalize(session.id)
        assert session.state == DebateState.OPEN
        assert session.verdict is None
        cached = (await store.get(assignment.id)).milestone(milestone_id).mini_course
        assert cached.mastery_status == MasteryStatus.UNTESTED

        assert await engine.finalize(session.id) == MasteryStatus.REFINED
        durable = repository.saved[assignment.id].milestone(milestone_id).mini_course
        assert durable.mastery_status == MasteryStatus.REFINED
        assert len(durable.debate_history) == 3

    @pytest.mark.asyncio
    async def test_concluded_session_is_released(self, store, generator):
        assignment, milestone_id = await _debatable(store)
        engine = DebateEngine(store, generator)
        session = await engine.start(assignment.id, milestone_id)
        await engine.finalize(session.id)

        assert session.id not in engine._sessions
        with pytest.raises(SessionConcluded, match="refined"):
            engine.get(session.id)

    @pytest.mark.asyncio
    async def test_concluded_ledger_is_bounded(self, generator):
        engine = DebateEngine(AssignmentStore(), generator)
        engine.CONCLUDED_MEMORY = 2
        session_ids = []
        for _ in range(3):
            engine.store = AssignmentStore()
            assignment, milestone_id = await _debatable(engine.store)
            session = await engine.start(assignment.id, milestone_id)
            await engine.finalize(session.id)
            session_ids.append(session.id)

        assert engine._sessions == {}
        assert list(engine._concluded) == session_ids[1:]
        with pytest.raises(NotFound):
            engine.get(session_ids[0])
        with pytest.raises(SessionConcluded):
            engine.get(session_ids[2])

    @pytest.mark.asyncio
    async def test_discard_persists_nothing(self, store, generator):
        assignment, milestone_id = await _debatable(store)
        engine = DebateEngine(store, generator, scoring=StepScoring([90]))
        session = await engine.start(assignment.id, milestone_id)
        await engine.submit(session.id, "argument")
        before = await store.get(assignment.id)

        engine.discard(session.id)

        assert await store.get(assignment.id) is before
        course = before.milestone(milestone_id).mini_course
        assert course.mastery_status == MasteryStatus.UNTESTED
        assert course.debate_history is None
        with pytest.raises(NotFound):
            engine.get(session.id)
