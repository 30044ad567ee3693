"""Teardown handler for phase simulators and timelines."""

from lifecycle.resource_registry import ResourceRegistry
from models.enums import ResourceCategory
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.LIFECYCLE)


class SimulatorTeardownHandler:
    """
    Destroys live simulators (cancelling their tick callbacks) and clears
    timelines, so the timer check that follows only sees work the test
    itself leaked.
    """

    def __init__(self, registry: ResourceRegistry):
        self.registry = registry

    @property
    def teardown_priority(self) -> int:
        return 120

    def teardown(self) -> None:
        timelines = self.registry.active(ResourceCategory.TIMELINE)
        if timelines:
            log.debug(f"Clearing {len(timelines)} timeline(s)")
        for record in timelines:
            record.resource.clear()
            self.registry.release(record.info.id)

        simulators = self.registry.active(ResourceCategory.SIMULATOR)
        if simulators:
            log.debug(f"Destroying {len(simulators)} simulator(s)")

        for record in simulators:
            # destroy() releases the record through the simulator's on_finalize hook
            record.resource.destroy()
            self.registry.release(record.info.id)

        for record in self.registry.active(ResourceCategory.STATE_MACHINE):
            self.registry.release(record.info.id)
