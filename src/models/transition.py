"""
Transition Models

Defines the append-only transition record kept by state machines and the
easing functions used to interpolate keyframe properties.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Generic, Optional, TypeVar

S = TypeVar("S")


@dataclass(frozen=True)
class TransitionRecord(Generic[S]):
    """
    One state change

    Attributes:
        from_state: State before the change
        to_state: State after the change
        timestamp: Clock reading (ms) when the change happened
        trigger: Optional label of what caused it ("start", "user", ...)

    Invariant kept by StateMachine:
        history[i].from_state == (initial if i == 0 else history[i-1].to_state)
    """
    from_state: S
    to_state: S
    timestamp: float
    trigger: Optional[str] = None

    def __repr__(self):
        label = f" [{self.trigger}]" if self.trigger else ""
        return f"TransitionRecord({_name(self.from_state)} → {_name(self.to_state)}{label} @ {self.timestamp})"


def _name(state) -> str:
    return getattr(state, "value", state)


# === Easing Functions ===
# t: progress 0.0-1.0 → factor 0.0-1.0

def ease_linear(t: float) -> float:
    """
    Linear easing (constant speed)

    Args:
        t: Progress (0.0 = start, 1.0 = end)

    Returns:
        Eased factor (0.0 to 1.0)
    """
    return t


def ease_in_quad(t: float) -> float:
    """Quadratic ease-in (slow start → fast end)"""
    return t * t


def ease_out_quad(t: float) -> float:
    """Quadratic ease-out (fast start → slow end)"""
    return 1 - (1 - t) * (1 - t)


def ease_in_out_quad(t: float) -> float:
    """Quadratic ease-in-out (slow start → fast middle → slow end)"""
    return 2 * t * t if t < 0.5 else 1 - (-2 * t + 2) ** 2 / 2


def ease_in_cubic(t: float) -> float:
    """Cubic ease-in (very slow start)"""
    return t * t * t


def ease_out_cubic(t: float) -> float:
    """Cubic ease-out (very slow end)"""
    return 1 - (1 - t) ** 3


def ease_in_out_cubic(t: float) -> float:
    """Cubic ease-in-out (very smooth acceleration/deceleration)"""
    return 4 * t ** 3 if t < 0.5 else 1 - (-2 * t + 2) ** 3 / 2


# CSS timing-function name → easing. "ease" has no closed form here, quad in-out is close enough.
EASING_FUNCTIONS: Dict[str, Callable[[float], float]] = {
    "linear": ease_linear,
    "ease": ease_in_out_quad,
    "ease-in": ease_in_quad,
    "ease-out": ease_out_quad,
    "ease-in-out": ease_in_out_quad,
    "ease-in-cubic": ease_in_cubic,
    "ease-out-cubic": ease_out_cubic,
    "ease-in-out-cubic": ease_in_out_cubic,
}


def get_easing(name: str) -> Optional[Callable[[float], float]]:
    """Resolve a CSS timing-function name, None if unknown"""
    return EASING_FUNCTIONS.get(name)
