"""
Enums for the animation harness state machines and clocks
"""

from enum import Enum, auto


class AnimationState(Enum):
    """
    Lifecycle states tracked by the animation state machine

    IDLE: Nothing scheduled yet
    RUNNING: Animation in progress
    PAUSED: Animation frozen, may resume
    COMPLETED: Ran to the end (terminal unless reset)
    CANCELLED: Stopped early (terminal unless reset)
    """
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AnimationPhase(Enum):
    """
    Keyframe phases derived from elapsed time

    COMPLETED and CANCELLED are terminal.
    """
    BEFORE_START = "before-start"
    ANIMATING = "animating"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (AnimationPhase.COMPLETED, AnimationPhase.CANCELLED)


class ClockMode(Enum):
    """Timer discipline selected once per scenario"""
    VIRTUAL = auto()   # Fully controlled timeline, no wall-clock time passes
    REAL = auto()      # Genuine wall-clock timers on the asyncio loop


class CallbackKind(Enum):
    """Kinds of work the timer bridge can hold"""
    TIMEOUT = auto()
    INTERVAL = auto()
    ANIMATION_FRAME = auto()
    MICROTASK = auto()


class ResourceCategory(Enum):
    """Logical grouping of resources created during a scenario"""
    STATE_MACHINE = auto()
    SIMULATOR = auto()
    SUBSCRIPTION = auto()
    HOOK_SESSION = auto()
    TIMELINE = auto()
    GENERAL = auto()


class AnimationDirection(Enum):
    """CSS animation-direction values"""
    NORMAL = "normal"
    REVERSE = "reverse"
    ALTERNATE = "alternate"
    ALTERNATE_REVERSE = "alternate-reverse"


class FillMode(Enum):
    """CSS animation-fill-mode values"""
    NONE = "none"
    FORWARDS = "forwards"
    BACKWARDS = "backwards"
    BOTH = "both"


class LogLevel(Enum):
    """Log severity levels"""
    DEBUG = auto()
    INFO = auto()
    WARN = auto()
    ERROR = auto()


class LogCategory(Enum):
    """Log categories for grouping related events"""
    CONFIG = auto()      # Settings loading, validation
    STATE = auto()       # State machine transitions
    SIMULATOR = auto()   # Phase simulator lifecycle
    STYLE = auto()       # Mocked computed-style store
    TIMER = auto()       # Virtual/real clock, callback flushing
    HOOK = auto()        # Hook evaluation sessions
    LIFECYCLE = auto()   # Scenario setup/teardown
    TASK = auto()        # Resource registry

    GENERAL = auto()    # Default general category
