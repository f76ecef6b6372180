"""
Assignment document storage.

The mastery core only ever hands over complete Assignment snapshots, so the row
keeps the whole document as JSON plus a few columns useful for listing.
"""

from datetime import datetime
from typing import Any, Dict

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from synapse.kernel.models.base import Base, TimestampMixin


class AssignmentRecord(Base, TimestampMixin):
    """Latest full snapshot of one assignment."""

    __tablename__ = "assignments"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    deadline: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    overall_progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    revision: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    document: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
