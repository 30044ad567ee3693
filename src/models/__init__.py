"""
Models package - Data models for the animation harness
"""

from .enums import AnimationState, AnimationPhase, ClockMode, CallbackKind, LogLevel, LogCategory
from .errors import (
    HarnessError,
    InvalidState,
    InvalidConfig,
    InvalidTransition,
    WrongClockMode,
    StaleResultAccess,
    PendingWorkLeak,
    SequenceMismatch,
)
from .transition import TransitionRecord
from .keyframe import KeyframeStep, KeyframeAnimationConfig, AnimationTimeline
from .style import StyleProperties, DEFAULT_STYLE_PROPERTIES
from .element import ElementRef
from .animation_state import MockAnimationState

__all__ = [
    'AnimationState',
    'AnimationPhase',
    'ClockMode',
    'CallbackKind',
    'LogLevel',
    'LogCategory',
    'HarnessError',
    'InvalidState',
    'InvalidConfig',
    'InvalidTransition',
    'WrongClockMode',
    'StaleResultAccess',
    'PendingWorkLeak',
    'SequenceMismatch',
    'TransitionRecord',
    'KeyframeStep',
    'KeyframeAnimationConfig',
    'AnimationTimeline',
    'StyleProperties',
    'DEFAULT_STYLE_PROPERTIES',
    'ElementRef',
    'MockAnimationState',
]
