"""Roadmap engine - assignment analysis into milestones."""

from synapse.engines.roadmap.analyzer import RoadmapAnalyzer

__all__ = ["RoadmapAnalyzer"]
