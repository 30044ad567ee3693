"""
Tests for BatchedUpdates (the default update boundary).
"""

import pytest

from engine.update_boundary import BatchedUpdates


@pytest.fixture
def boundary():
    return BatchedUpdates()


class TestBatching:
    def test_updates_apply_when_batch_exits(self, boundary):
        applied = []

        with boundary.batch():
            boundary.enqueue(lambda: applied.append(1))
            boundary.enqueue(lambda: applied.append(2))
            assert applied == []
            assert boundary.in_batch

        assert applied == [1, 2]
        assert boundary.flush_count == 1
        assert not boundary.in_batch

    def test_nested_batches_flush_once(self, boundary):
        applied = []

        with boundary.batch():
            with boundary.batch():
                boundary.enqueue(lambda: applied.append("inner"))
            assert applied == []
            boundary.enqueue(lambda: applied.append("outer"))

        assert applied == ["inner", "outer"]
        assert boundary.flush_count == 1

    def test_empty_batch_does_not_count_as_flush(self, boundary):
        with boundary.batch():
            pass

        assert boundary.flush_count == 0

    def test_update_enqueued_during_flush_joins_it(self, boundary):
        applied = []

        def first():
            applied.append("first")
            boundary.enqueue(lambda: applied.append("follow-up"))

        with boundary.batch():
            boundary.enqueue(first)

        assert applied == ["first", "follow-up"]
        assert boundary.flush_count == 1
        assert boundary.unwrapped_updates == 0

    def test_failing_update_drops_the_rest(self, boundary):
        applied = []

        def explode():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            with boundary.batch():
                boundary.enqueue(explode)
                boundary.enqueue(lambda: applied.append("never"))

        assert applied == []
        assert not boundary.in_batch


class TestUnwrappedUpdates:
    def test_update_outside_batch_applies_and_is_counted(self, boundary):
        applied = []

        boundary.enqueue(lambda: applied.append("now"))

        assert applied == ["now"]
        assert boundary.unwrapped_updates == 1

    def test_reset_counters(self, boundary):
        boundary.enqueue(lambda: None)
        with boundary.batch():
            boundary.enqueue(lambda: None)

        boundary.reset_counters()

        assert boundary.flush_count == 0
        assert boundary.unwrapped_updates == 0
