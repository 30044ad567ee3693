"""
Clock state for the timer bridge.

VirtualClock keeps a pending queue ordered by (due time, insertion sequence);
RealClock measures wall-clock milliseconds and leaves scheduling to the
asyncio loop. The bridge selects exactly one of them per scenario.
"""

import asyncio
import heapq
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Protocol, Tuple

from models.enums import CallbackKind


class IClock(Protocol):
    """
    Minimal clock contract consumed by simulators and state machines.

    TimerBridge implements it under both disciplines.
    """

    def now(self) -> float:
        """Current time in ms."""
        ...

    def set_timeout(self, callback: Callable[..., Any], delay_ms: float = 0, *args: Any) -> int:
        """Schedule callback; returns an id usable with cancel()."""
        ...

    def cancel(self, callback_id: int) -> bool:
        """Cancel by id; unknown or already-run ids are a no-op."""
        ...


@dataclass(eq=False)
class ScheduledCallback:
    """One unit of pending work"""
    id: int
    kind: CallbackKind
    callback: Callable[..., Any]
    args: Tuple[Any, ...]
    due: float
    seq: int
    interval: Optional[float] = None
    active: bool = True
    handle: Optional[asyncio.TimerHandle] = field(default=None, repr=False)

    @property
    def description(self) -> str:
        name = getattr(self.callback, "__qualname__", repr(self.callback))
        return f"#{self.id} {self.kind.name} {name} @ {self.due:g}ms"


class VirtualClock:
    """
    Fully controlled timeline

    Time only moves forward and only when the bridge advances it. Entries
    are compared by (due, seq), so same-time callbacks keep FIFO order.
    Stale heap items (cancelled, already fired, or rescheduled under a new
    seq) are discarded lazily.
    """

    def __init__(self, start_ms: float = 0.0):
        self.now: float = float(start_ms)
        self._heap: List[Tuple[float, int, ScheduledCallback]] = []

    def push(self, entry: ScheduledCallback) -> None:
        heapq.heappush(self._heap, (entry.due, entry.seq, entry))

    def advance_to(self, when: float) -> None:
        # Monotonic: never step backwards
        if when > self.now:
            self.now = when

    def _prune(self) -> None:
        while self._heap and not _is_live(self._heap[0]):
            heapq.heappop(self._heap)

    def peek(self) -> Optional[ScheduledCallback]:
        """Earliest live entry without removing it"""
        self._prune()
        return self._heap[0][2] if self._heap else None

    def pop_due(self, until: float) -> Optional[ScheduledCallback]:
        """Remove and return the earliest live entry due at or before `until`"""
        self._prune()
        if not self._heap or self._heap[0][0] > until:
            return None
        return heapq.heappop(self._heap)[2]

    def pending(self) -> List[ScheduledCallback]:
        """Live entries in execution order"""
        return [item[2] for item in sorted(self._heap) if _is_live(item)]

    def clear(self) -> None:
        self._heap.clear()


class RealClock:
    """Wall-clock milliseconds since the clock was created"""

    def __init__(self):
        self._origin = time.monotonic()

    def now(self) -> float:
        return (time.monotonic() - self._origin) * 1000.0


def _is_live(item: Tuple[float, int, ScheduledCallback]) -> bool:
    due, seq, entry = item
    return entry.active and entry.seq == seq and entry.due == due
