"""Progress engine - milestone completion and overall assignment progress."""

from synapse.engines.progress.milestone_store import MilestoneStore, compute_progress

__all__ = ["MilestoneStore", "compute_progress"]
