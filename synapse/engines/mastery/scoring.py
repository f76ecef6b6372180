"""
Debate scoring strategies.

A strategy maps the running tension and the latest exchange to the weight of
the next model turn. The debate engine clamps whatever it returns to [0, 100].
"""

import random
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from synapse.schemas.assignment import DebateTurn

MIN_WEIGHT = 0.0
MAX_WEIGHT = 100.0


def clamp_weight(value: float) -> float:
    return max(MIN_WEIGHT, min(MAX_WEIGHT, float(value)))


class ScoringStrategy(ABC):
    """Computes the intellectual weight of each model reply."""

    @abstractmethod
    def next_tension(
        self,
        current: float,
        transcript: Sequence[DebateTurn],
        reply: str,
    ) -> float:
        """
        Args:
            current: running tension before this exchange
            transcript: turns so far, ending with the learner's latest turn
            reply: the model's reply text for this exchange
        """


class RandomDriftScoring(ScoringStrategy):
    """
    Heuristic drift: tension + uniform(-5, 15), clamped.

    Placeholder policy for argument quality; not a pedagogical measurement.
    """

    def __init__(
        self,
        low: float = -5.0,
        high: float = 15.0,
        rng: Optional[random.Random] = None,
    ):
        if low > high:
            raise ValueError("low must not exceed high")
        self.low = low
        self.high = high
        self._rng = rng or random.Random()

    def next_tension(
        self,
        current: float,
        transcript: Sequence[DebateTurn],
        reply: str,
    ) -> float:
        return clamp_weight(current + self._rng.uniform(self.low, self.high))
