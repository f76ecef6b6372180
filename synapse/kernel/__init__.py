"""
Kernel layer: assignment snapshots, their durable sink and the audit log.

Invariants:
- Assignments are replaced whole, never patched in place
- Every replacement is persisted together with one event log row
"""

from synapse.kernel.models import AssignmentRecord, Base, EventLog, EventType
from synapse.kernel.repository import AssignmentRepository
from synapse.kernel.store import AssignmentStore

__all__ = [
    "AssignmentRecord",
    "AssignmentRepository",
    "AssignmentStore",
    "Base",
    "EventLog",
    "EventType",
]
