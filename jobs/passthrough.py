"""
Placeholder enhancer.

Stands in for the real enhancement model until one is wired up:
- reports ten 10% progress steps
- then "succeeds" with the input image unchanged

The executor's STEP_DELAY_SECONDS pause between steps is what makes a job
take a few seconds, so clients see realistic polling behaviour.
"""

from jobs.base import (
    AbstractEnhancer,
    EnhancementState,
    EnhancementSucceeded,
    ProgressStep,
    StepOutcome,
)


class PassthroughEnhancer(AbstractEnhancer):

    STEPS = 10
    STEP_SIZE = 10

    def step(self, state: EnhancementState) -> StepOutcome:
        if state.progress < self.STEPS * self.STEP_SIZE:
            return ProgressStep(self.STEP_SIZE)
        return EnhancementSucceeded(state.input_payload)

    @property
    def name(self) -> str:
        return "passthrough"
