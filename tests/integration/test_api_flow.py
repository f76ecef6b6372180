"""
API flow tests: assignment -> mini-course -> formative gate -> debate -> verdict,
plus the academic-freeze scaffolding flow, in-process over ASGI.
Uses a temp file SQLite database for the health probe; engines run on an
in-memory store with a scripted generator.
"""

import os
import tempfile
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

# File-based SQLite so all connections share the same DB
_tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_tmp.close()
TEST_DB_PATH = _tmp.name
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB_PATH}"
os.environ["OPENAI_API_KEY"] = ""
from synapse.config import get_settings
get_settings.cache_clear()

from helpers import ScriptedGenerator, StepScoring
from synapse.api.deps import build_services, get_services
from synapse.database import build_engine, build_session_maker, get_db
from synapse.errors import GenerationFailed
from synapse.kernel.store import AssignmentStore
from synapse.main import app

TEST_ENGINE = build_engine(f"sqlite+aiosqlite:///{TEST_DB_PATH}")
TEST_SESSION_MAKER = build_session_maker(TEST_ENGINE)

API = "/api/v1"


async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TEST_SESSION_MAKER() as session:
        yield session


@pytest.fixture
def generator() -> ScriptedGenerator:
    return ScriptedGenerator(
        {
            "roadmap": {
                "title": "Policy Brief",
                "description": "Write a policy brief.",
                "learningOutcome": "Evaluate a policy.",
                "diagnosticQuestions": ["What is the policy?"],
                "deadline": "2030-01-15T12:00:00Z",
                "course": "PUBPOL 101",
                "rubrics": [],
                "milestones": [
                    {
                        "title": "Research",
                        "description": "Find three sources.",
                        "estimatedMinutes": 60,
                        "deadline": "2030-01-10T12:00:00Z",
                    }
                ],
            }
        }
    )


@pytest.fixture
def services(generator):
    return build_services(
        get_settings(),
        generator=generator,
        store=AssignmentStore(),
        scoring=StepScoring([40, 30, 20]),
    )


@pytest_asyncio.fixture
async def client(services):
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_services] = lambda: services
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        await services.teardown()
        app.dependency_overrides.pop(get_db, None)
        app.dependency_overrides.pop(get_services, None)


def _assignment_body(hours_to_deadline: float, milestones: int = 4) -> dict:
    deadline = datetime.now(timezone.utc) + timedelta(hours=hours_to_deadline)
    return {
        "title": "Market Failure Essay",
        "description": "2000 words on market failure.",
        "learningOutcome": "Analyze market failure.",
        "deadline": deadline.isoformat(),
        "course": "ECON 201",
        "milestones": [
            {"title": f"Step {i + 1}", "description": "Work", "estimatedMinutes": 30}
            for i in range(milestones)
        ],
    }


async def _create(client: AsyncClient, hours_to_deadline: float = 24 * 10) -> dict:
    response = await client.post(f"{API}/assignments", json=_assignment_body(hours_to_deadline))
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["database"] == "connected"
    assert "X-Request-ID" in response.headers


@pytest.mark.asyncio
async def test_mastery_flow(client, generator):
    assignment = await _create(client)
    assignment_id = assignment["id"]
    milestone_id = assignment["milestones"][0]["id"]
    assert assignment["overallProgress"] == 0
    milestone_path = f"{API}/assignments/{assignment_id}/milestones/{milestone_id}"

    # Progress is independent of mastery
    toggled = await client.post(f"{milestone_path}/toggle")
    assert toggled.status_code == 200
    assert toggled.json()["overallProgress"] == 25
    listed = await client.get(f"{API}/assignments/{assignment_id}/milestones")
    assert [m["status"] for m in listed.json()] == ["completed", "todo", "todo", "todo"]

    course = await client.post(f"{milestone_path}/mini-course")
    assert course.status_code == 200
    assert course.json()["masteryStatus"] == "untested"
    assert course.json()["formativeTaskCompleted"] is False
    again = await client.post(f"{milestone_path}/mini-course")
    assert again.json() == course.json()
    assert generator.calls_for("mini_course") == 1

    locked = await client.post(f"{milestone_path}/debate")
    assert locked.status_code == 409
    assert locked.json()["code"] == "GateClosed"

    completed = await client.post(f"{milestone_path}/formative/complete")
    assert completed.status_code == 200
    gate = await client.get(f"{milestone_path}/formative")
    assert gate.json() == {"milestoneId": milestone_id, "open": True}

    started = await client.post(f"{milestone_path}/debate")
    assert started.status_code == 201
    session = started.json()
    assert session["state"] == "open"
    assert len(session["transcript"]) == 1
    assert session["transcript"][0]["intellectualWeight"] == 50
    assert session["runningTension"] == 0

    for text in ("Externalities shift costs.", "Pigouvian taxes correct them.", "With caveats."):
        turn = await client.post(f"{API}/debates/{session['id']}/turns", json={"text": text})
        assert turn.status_code == 200
    state = turn.json()
    assert state["runningTension"] == 90
    assert state["canFinalize"] is True
    assert [t["intellectualWeight"] for t in state["transcript"] if t["role"] == "user"] == [0, 0, 0]

    finalized = await client.post(f"{API}/debates/{session['id']}/finalize")
    assert finalized.status_code == 200
    assert finalized.json() == {
        "sessionId": session["id"],
        "masteryStatus": "perfected",
        "finalTension": 90,
        "turns": 7,
    }

    late = await client.post(f"{API}/debates/{session['id']}/turns", json={"text": "One more"})
    assert late.status_code == 409
    assert late.json()["code"] == "SessionConcluded"

    view = await client.get(f"{API}/assignments/{assignment_id}")
    stored = view.json()["assignment"]["milestones"][0]
    assert stored["status"] == "completed"
    assert stored["miniCourse"]["masteryStatus"] == "perfected"
    assert len(stored["miniCourse"]["debateHistory"]) == 7


@pytest.mark.asyncio
async def test_generation_failure_is_retryable(client, generator):
    assignment = await _create(client)
    milestone_id = assignment["milestones"][0]["id"]
    path = f"{API}/assignments/{assignment['id']}/milestones/{milestone_id}/mini-course"
    generator.queue("mini_course", GenerationFailed("upstream error", schema_name="mini_course"))

    failed = await client.post(path)
    assert failed.status_code == 502
    assert failed.json()["code"] == "GenerationFailed"

    view = await client.get(f"{API}/assignments/{assignment['id']}")
    assert view.json()["assignment"]["milestones"][0]["miniCourse"] is None

    retried = await client.post(path)
    assert retried.status_code == 200


@pytest.mark.asyncio
async def test_discarded_debate_persists_nothing(client):
    assignment = await _create(client)
    milestone_id = assignment["milestones"][0]["id"]
    milestone_path = f"{API}/assignments/{assignment['id']}/milestones/{milestone_id}"
    await client.post(f"{milestone_path}/mini-course")
    await client.post(f"{milestone_path}/formative/complete")
    session = (await client.post(f"{milestone_path}/debate")).json()
    await client.post(f"{API}/debates/{session['id']}/turns", json={"text": "Argument"})

    discarded = await client.delete(f"{API}/debates/{session['id']}")
    assert discarded.status_code == 204
    assert (await client.get(f"{API}/debates/{session['id']}")).status_code == 404

    view = await client.get(f"{API}/assignments/{assignment['id']}")
    course = view.json()["assignment"]["milestones"][0]["miniCourse"]
    assert course["masteryStatus"] == "untested"
    assert course["debateHistory"] is None


@pytest.mark.asyncio
async def test_scaffolding_flow(client):
    frozen = await _create(client, hours_to_deadline=30)
    relaxed = await _create(client, hours_to_deadline=72)

    view = (await client.get(f"{API}/assignments/{frozen['id']}")).json()
    assert view["freeze"]["offerTask"] is True
    assert view["assignment"]["atRisk"] is True
    calm = (await client.get(f"{API}/assignments/{relaxed['id']}")).json()
    assert calm["freeze"]["frozen"] is False
    assert calm["assignment"]["atRisk"] is False

    path = f"{API}/assignments/{frozen['id']}/scaffolding"
    task = await client.post(path)
    assert task.status_code == 201
    assert task.json()["completed"] is False
    assert task.json()["durationSeconds"] == 120

    started = await client.post(f"{path}/start")
    assert started.status_code == 200
    assert started.json()["running"] is True
    assert 0 < started.json()["remainingSeconds"] <= 120

    stopped = await client.post(f"{path}/stop")
    assert stopped.status_code == 200
    assert stopped.json()["running"] is False
    assert stopped.json()["task"]["completed"] is False
    assert (await client.post(f"{path}/start")).json()["running"] is True

    done = await client.post(f"{path}/complete")
    assert done.status_code == 200
    assert done.json()["currentScaffoldingTask"]["completed"] is True

    status_after = (await client.get(path)).json()
    assert status_after["running"] is False
    assert status_after["remainingSeconds"] is None

    view = (await client.get(f"{API}/assignments/{frozen['id']}")).json()
    assert view["freeze"]["frozen"] is True
    assert view["freeze"]["suppressed"] is True
    assert view["freeze"]["offerTask"] is False


@pytest.mark.asyncio
async def test_analyze_and_validation(client):
    analyzed = await client.post(f"{API}/assignments/analyze", json={"text": "Write a policy brief."})
    assert analyzed.status_code == 201
    data = analyzed.json()
    assert data["course"] == "PUBPOL 101"
    assert data["milestones"][0]["status"] == "todo"

    recorded = await client.post(
        f"{API}/assignments/{data['id']}/validations",
        json={"overallScore": 81, "strengths": ["Structure"], "rubricScores": [
            {"criterion": "Argument", "score": 3, "feedback": "Solid"}
        ]},
    )
    assert recorded.status_code == 201
    history = recorded.json()["validationHistory"]
    assert len(history) == 1
    assert history[0]["rubricScores"][0]["score"] == 3
    assert history[0]["assessmentDate"]


@pytest.mark.asyncio
async def test_error_mapping(client):
    missing = await client.get(f"{API}/assignments/does-not-exist")
    assert missing.status_code == 404
    assert missing.json()["code"] == "NotFound"

    invalid = await client.post(f"{API}/assignments", json={"title": "No deadline"})
    assert invalid.status_code == 422
    assert invalid.json()["detail"] == "Validation error"

    assignment = await _create(client)
    unknown_milestone = await client.post(
        f"{API}/assignments/{assignment['id']}/milestones/nope/toggle"
    )
    assert unknown_milestone.status_code == 404

    empty_turn = await client.post(f"{API}/debates/whatever/turns", json={"text": ""})
    assert empty_turn.status_code == 422
