"""
EnhancementJob ORM model — maps to the "enhancement_jobs" table.

Key design decisions:
- UUID primary key generated by the orchestrator (not the database), so the
  id exists before the row is written and can be registered for cancellation
  in the same request
- input_payload is kept for the life of the row; output_payload and
  error_message are mutually exclusive and only set on the terminal write
- progress is an integer percent; it is meaningless once status is terminal
  except that COMPLETED always carries 100
- created_at / completed_at are set by the application in UTC so the
  terminal timestamp is written in the same UPDATE as the status change
"""

import uuid
from datetime import datetime

from sqlalchemy import String, Integer, DateTime, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base
from models.enums import JobStatus


class EnhancementJob(Base):
    __tablename__ = "enhancement_jobs"

    # ── Identity ────────────────────────────────────────────────
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)

    # ── Lifecycle ───────────────────────────────────────────────
    status: Mapped[str] = mapped_column(
        String(20), default=JobStatus.PROCESSING.value, nullable=False, index=True
    )
    progress: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # ── Request ─────────────────────────────────────────────────
    input_payload: Mapped[str] = mapped_column(Text, nullable=False)
    style: Mapped[str] = mapped_column(String(100), nullable=False)
    notification_target: Mapped[str | None] = mapped_column(String(512), nullable=True)

    # ── Outcome ─────────────────────────────────────────────────
    output_payload: Mapped[str | None] = mapped_column(Text, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    # ── Timestamps ──────────────────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    @property
    def job_status(self) -> JobStatus:
        return JobStatus(self.status)

    def __repr__(self) -> str:
        return f"<EnhancementJob {self.id} [{self.style}] {self.status} {self.progress}%>"
