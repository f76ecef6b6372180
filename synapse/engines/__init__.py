"""Engines: progress, mastery, scaffolding and roadmap analysis."""
