"""Scaffolding engine - academic freeze detection and timed micro-tasks."""

from synapse.engines.scaffolding.countdown import ScaffoldCountdown
from synapse.engines.scaffolding.intervention import FreezeAssessment, ScaffoldingIntervention

__all__ = ["FreezeAssessment", "ScaffoldCountdown", "ScaffoldingIntervention"]
