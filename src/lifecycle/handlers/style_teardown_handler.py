"""Teardown handler for the mocked style registry."""

from services.property_store import PropertyMockStore
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.LIFECYCLE)


class StyleTeardownHandler:
    """
    Clears every style registration.

    Required between scenarios: the store outlives a single test's objects.
    """

    def __init__(self, store: PropertyMockStore):
        self.store = store

    @property
    def teardown_priority(self) -> int:
        return 50  # LAST

    def teardown(self) -> None:
        if self.store.selector_count:
            log.debug(f"Clearing {self.store.selector_count} style registration(s)")
        self.store.clear_all()
