"""
Error taxonomy for the mastery core.

Generation failures are local and retryable; gate and state violations are
contract errors surfaced to the caller.
"""

from typing import Optional


class MasteryError(Exception):
    """Base class for all mastery-core errors."""


class InvalidState(MasteryError, ValueError):
    """Operation not allowed in the current state (unknown ids, empty input, etc.)."""


class NotFound(InvalidState):
    """Referenced assignment, milestone or debate session does not exist."""


class SessionConcluded(InvalidState):
    """The debate session was already finalized."""


class GateClosed(MasteryError):
    """Debate start attempted before the formative task was completed."""

    def __init__(self, milestone_id: str):
        self.milestone_id = milestone_id
        super().__init__(
            f"Formative task for milestone {milestone_id} is not complete; debate is locked"
        )


class GenerationFailed(MasteryError):
    """The content generator errored, timed out, or returned unusable content."""

    def __init__(self, reason: str, *, schema_name: Optional[str] = None):
        self.reason = reason
        self.schema_name = schema_name
        prefix = f"{schema_name}: " if schema_name else ""
        super().__init__(f"Content generation failed: {prefix}{reason}")
