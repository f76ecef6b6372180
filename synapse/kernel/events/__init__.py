"""Append-only audit log."""

from synapse.kernel.events.event_store import EventStore
from synapse.kernel.models.event_log import EventLog, EventType

__all__ = ["EventStore", "EventLog", "EventType"]
