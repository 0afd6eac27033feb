"""
Abstract base class for enhancers — the code that actually transforms the image.

The executor drives an enhancer one step at a time:

    state = EnhancementState(...)
    outcome = enhancer.step(state)     # → ProgressStep / EnhancementSucceeded / EnhancementFailed

After a ProgressStep the executor persists the new progress, pauses, checks
for cancellation, and calls step() again with the updated state. Stepping
(rather than one long run() call) is what gives the executor safe points
to report progress and to stop a cancelled job.

To add a new enhancer:
1. Create a class that inherits AbstractEnhancer
2. Implement step() and name
3. Add it to jobs/registry.py
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Union
import uuid


@dataclass
class EnhancementState:
    """What an enhancer sees on each step. `scratch` persists between steps of one job."""
    job_id: uuid.UUID
    input_payload: str
    style: str
    progress: int = 0
    scratch: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ProgressStep:
    delta: int                 # percentage points gained by this step (>= 0)


@dataclass(frozen=True)
class EnhancementSucceeded:
    output_payload: str


@dataclass(frozen=True)
class EnhancementFailed:
    error_message: str


StepOutcome = Union[ProgressStep, EnhancementSucceeded, EnhancementFailed]


class AbstractEnhancer(ABC):

    @abstractmethod
    def step(self, state: EnhancementState) -> StepOutcome:
        """
        Advance the enhancement by one step.

        Returns:
            ProgressStep while work remains, then exactly one terminal
            outcome (EnhancementSucceeded or EnhancementFailed).

        Raises:
            Any exception → the executor marks the job FAILED with the
            exception text.
        """
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier used by the ENHANCER setting (e.g., 'passthrough')."""
        ...
