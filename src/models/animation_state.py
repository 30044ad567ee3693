"""
Mock animation state exposed to hooks under test.
"""

from dataclasses import dataclass, field, replace
from typing import Mapping, Optional, Tuple

from models.enums import AnimationState
from models.transition import TransitionRecord


@dataclass(frozen=True)
class MockAnimationState:
    """
    Snapshot of the animation context a hook sees on each render

    progress is a 0-1 fraction (mirrors the wired simulator when there is one).
    """
    current_state: AnimationState = AnimationState.IDLE
    previous_state: Optional[AnimationState] = None
    transitions: Tuple[TransitionRecord, ...] = field(default_factory=tuple)
    duration: Optional[float] = None
    progress: float = 0.0
    iteration_count: int = 0

    def updated(self, updates: Mapping[str, object]) -> "MockAnimationState":
        """Field-by-field partial update"""
        return replace(self, **dict(updates))


def create_mock_animation_state(**overrides) -> MockAnimationState:
    """Defaults with selected fields overridden"""
    return MockAnimationState().updated(overrides)
