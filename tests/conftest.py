"""
Pytest fixtures for the Synapse mastery core tests.
"""

import pytest

from helpers import ScriptedGenerator
from synapse.kernel.store import AssignmentStore


@pytest.fixture
def store() -> AssignmentStore:
    """In-memory assignment store (no repository)."""
    return AssignmentStore()


@pytest.fixture
def generator() -> ScriptedGenerator:
    return ScriptedGenerator()
