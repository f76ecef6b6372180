"""
FastAPI dependencies for the mastery services and database sessions.
"""

from dataclasses import dataclass
from typing import Annotated, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from synapse.ai.generator import ContentGenerator, build_content_generator
from synapse.config import Settings
from synapse.database import async_session_maker, get_db
from synapse.engines.mastery import (
    DebateEngine,
    FormativeGate,
    MiniCourseCache,
    RandomDriftScoring,
    ScoringStrategy,
)
from synapse.engines.progress import MilestoneStore
from synapse.engines.roadmap import RoadmapAnalyzer
from synapse.engines.scaffolding import ScaffoldingIntervention
from synapse.kernel.repository import AssignmentRepository
from synapse.kernel.store import AssignmentStore


DbSession = Annotated[AsyncSession, Depends(get_db)]


@dataclass
class MasteryServices:
    """Every engine, wired to one shared AssignmentStore."""

    store: AssignmentStore
    milestones: MilestoneStore
    mini_courses: MiniCourseCache
    gate: FormativeGate
    debates: DebateEngine
    scaffolding: ScaffoldingIntervention
    roadmaps: RoadmapAnalyzer

    async def teardown(self) -> None:
        await self.scaffolding.teardown()
        self.debates.teardown()


def build_services(
    settings: Settings,
    generator: Optional[ContentGenerator] = None,
    store: Optional[AssignmentStore] = None,
    scoring: Optional[ScoringStrategy] = None,
) -> MasteryServices:
    generator = generator or build_content_generator(settings)
    if store is None:
        store = AssignmentStore(AssignmentRepository(async_session_maker))
    language = settings.ai_language
    return MasteryServices(
        store=store,
        milestones=MilestoneStore(store),
        mini_courses=MiniCourseCache(store, generator, language=language),
        gate=FormativeGate(store),
        debates=DebateEngine(
            store,
            generator,
            scoring=scoring or RandomDriftScoring(),
            language=language,
            opening_weight=settings.opening_weight,
            finalize_threshold=settings.finalize_hint_threshold,
            perfected_threshold=settings.perfected_threshold,
        ),
        scaffolding=ScaffoldingIntervention(
            store,
            generator,
            language=language,
            freeze_window_hours=settings.freeze_window_hours,
            tick_seconds=settings.countdown_tick_seconds,
        ),
        roadmaps=RoadmapAnalyzer(generator, language=language),
    )


def get_services(request: Request) -> MasteryServices:
    """Services built in the application lifespan."""
    return request.app.state.services


Services = Annotated[MasteryServices, Depends(get_services)]
