"""
Tests for TeardownCoordinator and ResourceRegistry.
"""

import pytest

from lifecycle.resource_registry import ResourceRegistry
from lifecycle.teardown_coordinator import TeardownCoordinator
from models.enums import ResourceCategory


class RecordingHandler:
    def __init__(self, name, priority, log, error=None):
        self.name = name
        self.priority = priority
        self.log = log
        self.error = error

    @property
    def teardown_priority(self):
        return self.priority

    def teardown(self):
        self.log.append(self.name)
        if self.error is not None:
            raise self.error


class TestTeardownCoordinator:
    """Priority order, continue-on-error, handler validation."""

    def test_handlers_run_highest_priority_first(self):
        order = []
        coordinator = TeardownCoordinator()
        coordinator.register(RecordingHandler("store", 50, order))
        coordinator.register(RecordingHandler("hooks", 130, order))
        coordinator.register(RecordingHandler("timers", 100, order))

        coordinator.teardown_all()

        assert order == ["hooks", "timers", "store"]
        assert coordinator.last_failures == []

    def test_failure_does_not_stop_later_handlers(self):
        order = []
        first = RuntimeError("first")
        coordinator = TeardownCoordinator()
        coordinator.register(RecordingHandler("a", 3, order, error=first))
        coordinator.register(RecordingHandler("b", 2, order, error=ValueError("second")))
        coordinator.register(RecordingHandler("c", 1, order))

        with pytest.raises(RuntimeError) as exc:
            coordinator.teardown_all()

        assert exc.value is first
        assert order == ["a", "b", "c"]
        assert len(coordinator.last_failures) == 2

    def test_register_rejects_incomplete_handler(self):
        coordinator = TeardownCoordinator()

        with pytest.raises(ValueError):
            coordinator.register(object())

    def test_get_handler(self):
        coordinator = TeardownCoordinator()
        handler = RecordingHandler("x", 1, [])
        coordinator.register(handler)

        assert coordinator.get_handler(RecordingHandler) is handler
        assert coordinator.get_handler(ResourceRegistry) is None
        assert coordinator.handlers == [handler]


class TestResourceRegistry:
    def test_register_and_release(self):
        registry = ResourceRegistry()
        resource = object()

        resource_id = registry.register(resource, ResourceCategory.SIMULATOR, "PhaseSimulator(fade)")

        assert [r.resource for r in registry.active()] == [resource]
        assert registry.active(ResourceCategory.HOOK_SESSION) == []
        assert registry.release(resource_id)
        assert not registry.release(resource_id)
        assert registry.active() == []
        assert registry.released()[0].released_at is not None

    def test_release_by_identity(self):
        registry = ResourceRegistry()
        first, second = object(), object()
        registry.register(first, ResourceCategory.GENERAL, "first")
        registry.register(second, ResourceCategory.GENERAL, "second")

        assert registry.release_resource(second)
        assert not registry.release_resource(second)
        assert [r.resource for r in registry.active()] == [first]

    def test_summary_and_clear(self):
        registry = ResourceRegistry()
        registry.register(object(), ResourceCategory.TIMELINE, "timeline")
        released_id = registry.register(object(), ResourceCategory.TIMELINE, "timeline")
        registry.release(released_id)

        assert registry.summary() == "Resources: total=2, active=1, released=1"

        registry.clear()
        assert registry.list_all() == []

    def test_info_records_origin(self):
        registry = ResourceRegistry()
        registry.register(object(), ResourceCategory.STATE_MACHINE, "machine", created_by="test")

        info = registry.list_all()[0].info
        assert info.id == 1
        assert info.category is ResourceCategory.STATE_MACHINE
        assert info.created_by == "test"
        assert "test_info_records_origin" in info.origin_stack
