"""
pytest plugin with scenario-scoped harness fixtures.

Enable in a conftest.py:

    pytest_plugins = ["lifecycle.fixtures"]

Every fixture shares one HarnessContext per test, and its reset() runs
after the test body: a leaked timer fails the test at teardown.
"""

import pytest

from lifecycle.harness_context import HarnessContext


@pytest.fixture
def harness():
    """HarnessContext with mandatory teardown"""
    context = HarnessContext()
    yield context
    context.reset()


@pytest.fixture
def virtual_clock(harness):
    """The harness TimerBridge, switched to the virtual clock"""
    harness.timers.use_virtual_clock()
    return harness.timers


@pytest.fixture
def property_store(harness):
    return harness.store
