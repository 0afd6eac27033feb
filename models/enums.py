"""
Shared enumerations used across the entire project.

Using Python enums (inheriting from str) means:
- They serialize to JSON automatically ("processing", not "JobStatus.PROCESSING")
- They work as SQLAlchemy column values
- Typos become immediate errors instead of silent bugs
"""

import enum


class JobStatus(str, enum.Enum):
    PROCESSING = "processing"  # admitted and persisted, execution unit may be running
    COMPLETED = "completed"    # terminal: output stored, progress 100
    FAILED = "failed"          # terminal: error_message stored

    @property
    def is_terminal(self) -> bool:
        return self is not JobStatus.PROCESSING


class NotificationOutcome(str, enum.Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class ExecutionOutcome(str, enum.Enum):
    """How an execution unit exited. Not persisted — cancelled jobs stay PROCESSING."""
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
