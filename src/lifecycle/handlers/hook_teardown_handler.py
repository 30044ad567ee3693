"""Teardown handler for mounted hook sessions."""

from lifecycle.resource_registry import ResourceRegistry
from models.enums import ResourceCategory
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.LIFECYCLE)


class HookTeardownHandler:
    """
    Unmounts every hook session still mounted.

    Runs before simulators are destroyed so no session re-renders on a
    teardown-driven cancellation.
    """

    def __init__(self, registry: ResourceRegistry):
        self.registry = registry

    @property
    def teardown_priority(self) -> int:
        return 130  # FIRST

    def teardown(self) -> None:
        records = self.registry.active(ResourceCategory.HOOK_SESSION)
        if records:
            log.debug(f"Unmounting {len(records)} hook session(s)")

        for record in records:
            record.resource.unmount()
            self.registry.release(record.info.id)
