from .hook_teardown_handler import HookTeardownHandler
from .simulator_teardown_handler import SimulatorTeardownHandler
from .timer_teardown_handler import TimerTeardownHandler
from .style_teardown_handler import StyleTeardownHandler

__all__ = [
    "HookTeardownHandler",
    "SimulatorTeardownHandler",
    "TimerTeardownHandler",
    "StyleTeardownHandler",
]
