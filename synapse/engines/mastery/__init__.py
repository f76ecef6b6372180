"""
Mastery engine.

Tier 1 (content): MiniCourseCache generates each milestone's mini-course once.
Tier 2 (gate): FormativeGate opens when the formative action is done.
Tier 3 (debate): DebateEngine runs the sparring session; MasteryResolver
turns its final tension into a verdict.
"""

from synapse.engines.mastery.debate_engine import DebateEngine, DebateSession, DebateState
from synapse.engines.mastery.formative_gate import FormativeGate
from synapse.engines.mastery.mini_course_cache import MiniCourseCache
from synapse.engines.mastery.resolver import MasteryResolver
from synapse.engines.mastery.scoring import RandomDriftScoring, ScoringStrategy, clamp_weight

__all__ = [
    "DebateEngine",
    "DebateSession",
    "DebateState",
    "FormativeGate",
    "MiniCourseCache",
    "MasteryResolver",
    "RandomDriftScoring",
    "ScoringStrategy",
    "clamp_weight",
]
