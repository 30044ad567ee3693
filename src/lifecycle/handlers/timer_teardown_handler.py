"""Teardown handler for the timer bridge and update boundary."""

from engine.timer_bridge import TimerBridge
from engine.update_boundary import BatchedUpdates
from models.errors import PendingWorkLeak
from models.settings import TeardownSettings
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.LIFECYCLE)


class TimerTeardownHandler:
    """
    Checks for leaked work, then restores the ambient clock.

    The clock is always restored, even when a leak is reported.

    Raises (from teardown):
        PendingWorkLeak: Callbacks still scheduled, or (when configured)
            state updates that ran outside the update boundary
    """

    def __init__(self, bridge: TimerBridge, boundary: BatchedUpdates, settings: TeardownSettings):
        self.bridge = bridge
        self.boundary = boundary
        self.settings = settings

    @property
    def teardown_priority(self) -> int:
        return 100

    def teardown(self) -> None:
        leaked = [entry.description for entry in self.bridge.pending_callbacks()]
        unwrapped = self.boundary.unwrapped_updates

        discarded = self.bridge.restore()
        self.boundary.reset_counters()

        if leaked:
            log.error("Pending callbacks at teardown", count=len(leaked), callbacks=", ".join(leaked))
        if unwrapped:
            log.warn("State updates outside the update boundary", count=unwrapped)

        if leaked and self.settings.fail_on_pending_work:
            raise PendingWorkLeak("teardown", "no pending callbacks", leaked, detail=f"{discarded} discarded")
        if unwrapped and self.settings.fail_on_unwrapped_updates:
            raise PendingWorkLeak(
                "teardown", "all state updates inside the update boundary", f"{unwrapped} unwrapped update(s)"
            )
