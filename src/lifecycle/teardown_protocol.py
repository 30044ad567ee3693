"""
Teardown handler protocol for scenario-scoped cleanup.

Each harness component that holds scenario state implements
ITeardownHandler to take part in HarnessContext.reset().
"""

from typing import Protocol


class ITeardownHandler(Protocol):
    """
    Protocol for components that need cleanup between scenarios.

    The TeardownCoordinator calls teardown() on each handler in
    descending priority order.

    Example:
        class StyleTeardownHandler:
            @property
            def teardown_priority(self) -> int:
                return 50

            def teardown(self) -> None:
                self.store.clear_all()
    """

    @property
    def teardown_priority(self) -> int:
        """
        Higher priority tears down earlier.
        """
        ...

    def teardown(self) -> None:
        """
        Called once per reset(); may raise to report a leak.
        """
        ...
