"""
Enhancer registry — maps ENHANCER setting values to enhancer instances.

The orchestrator asks for one enhancer at startup (settings.ENHANCER) and
uses it for every job. Enhancers keep per-job data in
EnhancementState.scratch, never on self, so one instance is shared by all
worker threads.
"""

from jobs.autocontrast import AutocontrastEnhancer
from jobs.base import AbstractEnhancer
from jobs.passthrough import PassthroughEnhancer

# Each enhancer is instantiated once and reused (they're stateless)
_REGISTRY: dict[str, AbstractEnhancer] = {}


def _register_defaults() -> None:
    for enhancer_cls in [PassthroughEnhancer, AutocontrastEnhancer]:
        enhancer = enhancer_cls()
        _REGISTRY[enhancer.name] = enhancer


_register_defaults()


def get_enhancer(name: str) -> AbstractEnhancer:
    """Look up an enhancer by name. Raises ValueError if unknown."""
    enhancer = _REGISTRY.get(name)
    if enhancer is None:
        raise ValueError(
            f"Unknown enhancer: '{name}'. Available: {list(_REGISTRY.keys())}"
        )
    return enhancer
