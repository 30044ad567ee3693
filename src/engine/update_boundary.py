"""
Update Boundary

Stand-in for the host UI framework's synchronous batched-update primitive.
State updates enqueued inside batch() are applied when the outermost batch
exits; updates arriving outside any batch are applied immediately but
counted as unwrapped, the condition a host framework would warn about.
"""

from collections import deque
from contextlib import contextmanager
from typing import Callable, Deque, Iterator, Protocol

from models.enums import LogCategory
from utils.logger import get_logger

log = get_logger().for_category(LogCategory.TIMER)


class IUpdateBoundary(Protocol):
    """
    Protocol for the host's batched-update boundary.

    Example:
        with boundary.batch():
            boundary.enqueue(lambda: component.set_state(...))
        # updates applied here
    """

    def batch(self):
        """Context manager; nested use joins the outer batch."""
        ...

    def enqueue(self, update: Callable[[], None]) -> None:
        """Schedule a state update for the current batch."""
        ...


class BatchedUpdates:
    """Default IUpdateBoundary implementation"""

    def __init__(self):
        self._depth = 0
        self._queue: Deque[Callable[[], None]] = deque()
        self.flush_count = 0
        self.unwrapped_updates = 0

    @property
    def in_batch(self) -> bool:
        return self._depth > 0

    @contextmanager
    def batch(self) -> Iterator["BatchedUpdates"]:
        self._depth += 1
        try:
            yield self
        finally:
            self._depth -= 1
            if self._depth == 0:
                self._flush()

    def enqueue(self, update: Callable[[], None]) -> None:
        if self._depth > 0:
            self._queue.append(update)
            return

        self.unwrapped_updates += 1
        log.warn(
            "State update outside a batched-update boundary",
            update=getattr(update, "__qualname__", repr(update)),
            total=self.unwrapped_updates
        )
        update()

    def _flush(self) -> None:
        if not self._queue:
            return

        # Updates enqueued while flushing belong to this same flush
        self._depth += 1
        try:
            applied = 0
            while self._queue:
                update = self._queue.popleft()
                update()
                applied += 1
        finally:
            self._depth -= 1
            self._queue.clear()

        self.flush_count += 1
        log.debug("Flushed batched updates", applied=applied, flush=self.flush_count)

    def reset_counters(self) -> None:
        self.flush_count = 0
        self.unwrapped_updates = 0
