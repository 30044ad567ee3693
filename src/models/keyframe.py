"""
Keyframe Models

Configuration and timeline records for the phase simulator.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from models.enums import AnimationDirection, AnimationPhase, FillMode
from models.errors import InvalidConfig
from models.transition import get_easing


@dataclass(frozen=True)
class KeyframeStep:
    """
    One sampled point of an animation

    Attributes:
        percentage: Progress within the current iteration, 0-100
        phase: Phase derived for that progress
        timestamp: Clock reading (ms) at which the sample was taken
        properties: Interpolated style values at that progress
    """
    percentage: float
    phase: AnimationPhase
    timestamp: float
    properties: Optional[Dict[str, str]] = None


@dataclass(frozen=True)
class KeyframeAnimationConfig:
    """
    Configuration for a simulated keyframe animation

    Attributes:
        name: Animation name (must be non-empty)
        duration: Length of one iteration in ms (must be > 0)
        steps: Number of sampling intervals per iteration (None = harness default)
        iteration_count: Finite number of iterations (>= 1)
        timing_function: CSS timing function used for property interpolation
        direction: CSS animation-direction
        fill_mode: CSS animation-fill-mode

    Examples:
        fade = KeyframeAnimationConfig(name="fadeIn", duration=300, steps=5)
        loop = KeyframeAnimationConfig(name="rotateText", duration=3000, iteration_count=2)
    """
    name: str
    duration: float
    steps: Optional[int] = None
    iteration_count: int = 1
    timing_function: str = "linear"
    direction: AnimationDirection = AnimationDirection.NORMAL
    fill_mode: FillMode = FillMode.NONE

    def validate(self) -> "KeyframeAnimationConfig":
        """Raise InvalidConfig on any unusable field, return self otherwise"""
        if not self.name or not self.name.strip():
            raise InvalidConfig("KeyframeAnimationConfig.name", "non-empty name", repr(self.name))
        if not _is_finite_number(self.duration) or self.duration <= 0:
            raise InvalidConfig("KeyframeAnimationConfig.duration", "duration > 0", self.duration)
        if self.steps is not None and (not isinstance(self.steps, int) or self.steps < 1):
            raise InvalidConfig("KeyframeAnimationConfig.steps", "steps >= 1", self.steps)
        if not _is_finite_number(self.iteration_count) or self.iteration_count < 1:
            raise InvalidConfig(
                "KeyframeAnimationConfig.iteration_count",
                "finite iteration_count >= 1",
                self.iteration_count,
                detail="infinite iterations never complete under a drained clock",
            )
        if get_easing(self.timing_function) is None:
            raise InvalidConfig(
                "KeyframeAnimationConfig.timing_function", "known timing function", self.timing_function
            )
        return self

    @property
    def total_duration(self) -> float:
        return self.duration * self.iteration_count


@dataclass(frozen=True)
class AnimationTimeline:
    """Immutable snapshot of a simulator's progression"""
    name: str
    duration: float
    steps: Tuple[KeyframeStep, ...] = field(default_factory=tuple)
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    iteration_count: int = 1
    current_iteration: int = 0


def _is_finite_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


# Presets for common site animations (finite iterations only)
COMMON_ANIMATION_CONFIGS: Dict[str, KeyframeAnimationConfig] = {
    "fadeIn": KeyframeAnimationConfig(name="fadeIn", duration=300, steps=5),
    "slideUp": KeyframeAnimationConfig(name="slideUp", duration=400, steps=8),
    "rotateText": KeyframeAnimationConfig(name="rotateText", duration=3000, steps=20, iteration_count=1),
    "logoStagger": KeyframeAnimationConfig(name="logoStagger", duration=600, steps=10),
    "buttonHover": KeyframeAnimationConfig(name="buttonHover", duration=200, steps=4),
}
