"""
Teardown coordinator that runs scenario cleanup across all harness
components.

Handlers run in priority order; a failing handler never stops the
remaining ones, and the first failure is re-raised once all have run.
"""

from typing import List

from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.LIFECYCLE)


class TeardownCoordinator:
    """
    Coordinates teardown of multiple components.

    Example:
        coordinator = TeardownCoordinator()
        coordinator.register(HookTeardownHandler(registry))
        coordinator.register(TimerTeardownHandler(bridge, boundary, settings.teardown))
        coordinator.register(StyleTeardownHandler(store))

        coordinator.teardown_all()   # raises the first handler failure, if any
    """

    def __init__(self):
        self._handlers: List = []
        self.last_failures: List[BaseException] = []

    def register(self, handler) -> None:
        """
        Register a teardown handler.

        Handler must have:
        - teardown_priority property (int)
        - teardown() method

        Args:
            handler: Object implementing ITeardownHandler protocol
        """
        if not hasattr(handler, "teardown_priority"):
            raise ValueError(f"Handler {handler} missing teardown_priority property")
        if not hasattr(handler, "teardown"):
            raise ValueError(f"Handler {handler} missing teardown() method")

        self._handlers.append(handler)
        log.debug(f"Registered teardown handler: {handler.__class__.__name__}")

    def teardown_all(self) -> None:
        """
        Run every handler in descending priority order.

        Raises:
            The first exception raised by any handler, after all have run
        """
        sorted_handlers = sorted(
            self._handlers, key=lambda h: h.teardown_priority, reverse=True
        )
        failures: List[BaseException] = []

        for handler in sorted_handlers:
            handler_name = handler.__class__.__name__
            try:
                log.debug(f"Tearing down {handler_name} (priority={handler.teardown_priority})...")
                handler.teardown()
            except Exception as e:
                log.error(f"Teardown failed in {handler_name}: {e}", error_type=type(e).__name__)
                failures.append(e)

        self.last_failures = failures
        if failures:
            raise failures[0]

        log.debug("Teardown sequence complete", handlers=len(sorted_handlers))

    def get_handler(self, handler_type: type):
        """
        Get a registered handler by type.

        Returns:
            Handler instance or None if not found
        """
        for handler in self._handlers:
            if isinstance(handler, handler_type):
                return handler
        return None

    @property
    def handlers(self) -> List:
        return list(self._handlers)

    def __repr__(self):
        return f"TeardownCoordinator(handlers={len(self._handlers)})"
