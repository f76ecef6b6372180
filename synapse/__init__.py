"""Synapse mastery core: milestones, mini-courses, mastery debates and freeze scaffolding."""

__version__ = "0.1.0"
