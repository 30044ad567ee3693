"""
Lifecycle subsystem
-------------------

Exports the public API for:
- scenario context & teardown
- resource tracking & introspection
- teardown handlers

External code should import from:
    from lifecycle import HarnessContext, TeardownCoordinator
    from lifecycle.handlers import TimerTeardownHandler
"""

from .harness_context import HarnessContext
from .teardown_coordinator import TeardownCoordinator
from .resource_registry import ResourceRegistry, ResourceInfo
from .teardown_protocol import ITeardownHandler
from . import handlers

__all__ = [
    "HarnessContext",
    "TeardownCoordinator",
    "ResourceRegistry",
    "ResourceInfo",
    "ITeardownHandler",
    "handlers",
]
