"""
Mastery resolver - maps a debate's final tension to a terminal verdict.
"""

from typing import Optional

from synapse.schemas.assignment import MasteryStatus


class MasteryResolver:
    """
    Pure verdict rule.

    Final tension strictly above 85 is PERFECTED; anything else is REFINED.
    UNTESTED is never produced here.
    """

    PERFECTED_THRESHOLD = 85.0

    @staticmethod
    def resolve(final_tension: float, threshold: Optional[float] = None) -> MasteryStatus:
        bar = MasteryResolver.PERFECTED_THRESHOLD if threshold is None else threshold
        if final_tension > bar:
            return MasteryStatus.PERFECTED
        return MasteryStatus.REFINED
