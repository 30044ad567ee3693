"""
Timer Bridge

Coordinates a fully controlled virtual clock and genuine wall-clock timers
behind one scheduling interface, so code under test schedules work the
same way under either discipline.

Guarantees:
- Timers run in due-time order, FIFO for equal due times
- Same-tick microtasks run before any timer callback
- Every callback runs inside the update boundary (host batched-update flush)
- A callback cancelled before it runs never runs; cancelling later is a no-op

Example:
    bridge = TimerBridge()
    bridge.use_virtual_clock()
    bridge.set_timeout(on_done, 500)
    bridge.advance_by(1000)      # on_done ran at t=500, clock now at 1000
    bridge.restore()
"""

import asyncio
import math
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional

from engine.clock import RealClock, ScheduledCallback, VirtualClock
from engine.update_boundary import BatchedUpdates, IUpdateBoundary
from models.enums import CallbackKind, ClockMode, LogCategory
from models.errors import InvalidConfig, InvalidState, WrongClockMode
from utils.logger import get_logger

log = get_logger().for_category(LogCategory.TIMER)

DEFAULT_FRAME_INTERVAL_MS = 16.0
DEFAULT_RUN_ALL_LIMIT = 1000
# Upper bound on flush_pending_work() rounds; a callback that keeps rescheduling itself is a defect
FLUSH_ROUND_LIMIT = 10000


class TimerBridge:
    """
    Virtual/real clock coordinator

    Ambient discipline is the real clock; use_virtual_clock() switches a
    scenario onto the virtual timeline and restore() switches back.
    """

    def __init__(
        self,
        boundary: Optional[IUpdateBoundary] = None,
        frame_interval_ms: float = DEFAULT_FRAME_INTERVAL_MS,
        run_all_limit: int = DEFAULT_RUN_ALL_LIMIT
    ):
        """
        Args:
            boundary: Host batched-update boundary wrapped around every callback
            frame_interval_ms: Spacing of animation-frame callbacks
            run_all_limit: Default callback budget for run_all_timers(), for one microtask
                drain and for zero-delay callbacks at one instant in advance_by()
        """
        self.boundary = boundary or BatchedUpdates()
        self.frame_interval_ms = frame_interval_ms
        self._default_frame_interval_ms = frame_interval_ms
        self.run_all_limit = run_all_limit

        self._mode = ClockMode.REAL
        self._virtual: Optional[VirtualClock] = None
        self._real = RealClock()

        # id → entry for everything still pending (timers, intervals, frames, microtasks)
        self._entries: Dict[int, ScheduledCallback] = {}
        self._microtasks: Deque[ScheduledCallback] = deque()
        self._next_id = 1
        self._next_seq = 0

        # Failures raised by real-clock callbacks, surfaced at the next suspension point
        self._real_errors: List[BaseException] = []

    # ============================================================
    # Clock discipline
    # ============================================================

    @property
    def mode(self) -> ClockMode:
        return self._mode

    @property
    def is_virtual(self) -> bool:
        return self._mode is ClockMode.VIRTUAL

    def use_virtual_clock(
        self,
        start_ms: Optional[float] = None,
        frame_interval_ms: Optional[float] = None
    ) -> None:
        """
        Switch to the virtual clock.

        Args:
            start_ms: Initial virtual time (keeps the current virtual time if already virtual, else 0)
            frame_interval_ms: Override the animation-frame spacing

        Raises:
            InvalidState: Callbacks are still pending under the current discipline
            InvalidConfig: Negative start time or non-positive frame interval
        """
        self._require_no_pending("use_virtual_clock")
        if start_ms is not None and (not _is_finite(start_ms) or start_ms < 0):
            raise InvalidConfig("use_virtual_clock", "start_ms >= 0", start_ms)
        if frame_interval_ms is not None:
            if not _is_finite(frame_interval_ms) or frame_interval_ms <= 0:
                raise InvalidConfig("use_virtual_clock", "frame_interval_ms > 0", frame_interval_ms)
            self.frame_interval_ms = frame_interval_ms

        if start_ms is None:
            start_ms = self._virtual.now if self._virtual is not None else 0.0

        self._virtual = VirtualClock(start_ms)
        self._mode = ClockMode.VIRTUAL
        log.debug("Virtual clock active", start_ms=start_ms, frame_interval_ms=self.frame_interval_ms)

    def use_real_clock(self) -> None:
        """
        Switch to wall-clock timers.

        Raises:
            InvalidState: Callbacks are still pending under the current discipline
        """
        self._require_no_pending("use_real_clock")
        self._mode = ClockMode.REAL
        self._virtual = None
        log.debug("Real clock active")

    def restore(self) -> int:
        """
        Required teardown step: discard all pending work and return to the
        ambient (real) discipline.

        Returns:
            Number of pending callbacks discarded
        """
        discarded = len(self._entries)
        for entry in self._entries.values():
            entry.active = False
            if entry.handle is not None:
                entry.handle.cancel()
        self._entries.clear()
        self._microtasks.clear()
        if self._virtual is not None:
            self._virtual.clear()
        self._virtual = None
        self._mode = ClockMode.REAL
        self._real_errors.clear()
        self.frame_interval_ms = self._default_frame_interval_ms

        if discarded:
            log.debug("Timer bridge restored", discarded=discarded)
        return discarded

    def now(self) -> float:
        """Current time in ms under the active discipline"""
        if self._virtual is not None:
            return self._virtual.now
        return self._real.now()

    # ============================================================
    # Scheduling
    # ============================================================

    def set_timeout(self, callback: Callable[..., Any], delay_ms: float = 0, *args: Any) -> int:
        """Run callback(*args) once after delay_ms (negative delays clamp to 0)"""
        return self._schedule(CallbackKind.TIMEOUT, callback, args, _clamp_delay("set_timeout", delay_ms))

    def set_interval(self, callback: Callable[..., Any], interval_ms: float, *args: Any) -> int:
        """
        Run callback(*args) every interval_ms until cancelled.

        Raises:
            InvalidConfig: interval_ms <= 0 (would never let time advance)
        """
        if not _is_finite(interval_ms) or interval_ms <= 0:
            raise InvalidConfig("set_interval", "interval_ms > 0", interval_ms)
        return self._schedule(CallbackKind.INTERVAL, callback, args, interval_ms, interval=interval_ms)

    def request_animation_frame(self, callback: Callable[[float], Any]) -> int:
        """Run callback(frame_timestamp) on the next frame"""
        return self._schedule(CallbackKind.ANIMATION_FRAME, callback, (), self.frame_interval_ms)

    def queue_microtask(self, callback: Callable[..., Any], *args: Any) -> int:
        """Queue callback(*args) to run before the next timer callback"""
        entry = ScheduledCallback(
            id=self._allocate_id(),
            kind=CallbackKind.MICROTASK,
            callback=callback,
            args=args,
            due=self.now(),
            seq=self._allocate_seq(),
        )
        self._entries[entry.id] = entry
        self._microtasks.append(entry)
        return entry.id

    def cancel(self, callback_id: int) -> bool:
        """
        Cancel pending work by id.

        Returns:
            True if something was cancelled, False if the id already ran,
            was already cancelled, or never existed
        """
        entry = self._entries.pop(callback_id, None)
        if entry is None:
            return False
        entry.active = False
        if entry.handle is not None:
            entry.handle.cancel()
        log.debug("Callback cancelled", callback=entry.description)
        return True

    clear_timeout = cancel
    clear_interval = cancel
    cancel_animation_frame = cancel

    def pending_count(self) -> int:
        """Scheduled callbacks (including microtasks) not yet run or cancelled"""
        return len(self._entries)

    def pending_callbacks(self) -> List[ScheduledCallback]:
        """Pending work in execution order (virtual) or registration order (real)"""
        micro = [e for e in self._microtasks if e.active]
        if self._virtual is not None:
            return micro + self._virtual.pending()
        return micro + sorted(
            (e for e in self._entries.values() if e.kind is not CallbackKind.MICROTASK),
            key=lambda e: (e.due, e.seq)
        )

    # ============================================================
    # Virtual-clock operations
    # ============================================================

    def advance_by(self, ms: float) -> int:
        """
        Move virtual time forward by ms, flushing every callback due on the
        way in (due time, registration) order, each inside the update boundary.

        Returns:
            Number of callbacks executed (microtasks included)

        Raises:
            WrongClockMode: Real clock active
            InvalidConfig: Negative or non-finite ms
            InvalidState: run_all_limit callbacks ran without time moving
        """
        clock = self._require_virtual("advance_by")
        if not _is_finite(ms) or ms < 0:
            raise InvalidConfig("advance_by", "ms >= 0", ms)

        start = clock.now
        target = clock.now + ms
        executed = self._drain_microtasks("advance_by")

        # Callbacks fired since virtual time last moved
        same_instant = 0
        while True:
            entry = clock.peek()
            if entry is None or entry.due > target:
                break
            if entry.due > clock.now:
                same_instant = 0
            elif same_instant >= self.run_all_limit:
                raise InvalidState(
                    "advance_by",
                    f"virtual time to move within {self.run_all_limit} callbacks",
                    f"still at {clock.now}ms",
                    detail=f"{entry.description} keeps rescheduling itself with zero delay",
                )
            clock.pop_due(entry.due)
            clock.advance_to(entry.due)
            self._fire(entry)
            same_instant += 1
            executed += 1
            executed += self._drain_microtasks("advance_by")

        clock.advance_to(target)
        log.debug("Advanced virtual clock", from_ms=start, to_ms=target, executed=executed)
        return executed

    def run_all_pending(self) -> int:
        """
        Drain the callbacks that existed before this call (snapshot semantics).

        Callbacks scheduled during the drain, including the next occurrence
        of an interval, stay pending, so a self-rescheduling timer runs
        exactly once per call. Virtual time moves to each callback's due time.

        Raises:
            WrongClockMode: Real clock active
        """
        clock = self._require_virtual("run_all_pending")
        snapshot = [(entry, entry.seq) for entry in clock.pending()]

        executed = self._drain_microtasks("run_all_pending")
        for entry, seq in snapshot:
            # Cancelled or rescheduled by an earlier callback in this drain
            if not entry.active or entry.seq != seq:
                continue
            clock.advance_to(entry.due)
            self._fire(entry)
            executed += 1
            executed += self._drain_microtasks("run_all_pending")

        log.debug("Ran pending callbacks", snapshot=len(snapshot), executed=executed, now_ms=clock.now)
        return executed

    def run_all_timers(self, limit: Optional[int] = None) -> int:
        """
        Opt-in alternative to run_all_pending(): keep draining until nothing
        is pending, including callbacks scheduled during the drain.

        Args:
            limit: Callback budget (defaults to run_all_limit)

        Raises:
            WrongClockMode: Real clock active
            InvalidState: Budget exhausted (e.g. an interval or a self-rescheduling timeout)
        """
        clock = self._require_virtual("run_all_timers")
        budget = self.run_all_limit if limit is None else limit

        executed = self._drain_microtasks("run_all_timers")
        while True:
            entry = clock.peek()
            if entry is None:
                break
            if executed >= budget:
                raise InvalidState(
                    "run_all_timers",
                    f"drain within {budget} callbacks",
                    f"{len(clock.pending())} still pending",
                    detail="self-rescheduling timer; use run_all_pending() or advance_by()",
                )
            clock.pop_due(entry.due)
            clock.advance_to(entry.due)
            self._fire(entry)
            executed += 1
            executed += self._drain_microtasks("run_all_timers")

        return executed

    def advance_to_next_timer(self) -> bool:
        """
        Jump to the next pending timer and run everything due then.

        Returns:
            False if nothing was pending
        """
        clock = self._require_virtual("advance_to_next_timer")
        self._drain_microtasks("advance_to_next_timer")
        entry = clock.peek()
        if entry is None:
            return False
        self.advance_by(max(0.0, entry.due - clock.now))
        return True

    def advance_frames(self, count: int = 1) -> int:
        """Advance by `count` animation frames"""
        self._require_virtual("advance_frames")
        if count < 0:
            raise InvalidConfig("advance_frames", "count >= 0", count)
        executed = 0
        for _ in range(count):
            executed += self.advance_by(self.frame_interval_ms)
        return executed

    def run_timer_cycles(self, cycles: int, cycle_ms: float) -> int:
        """Advance `cycles` times by cycle_ms (bounded alternative to draining periodic timers)"""
        self._require_virtual("run_timer_cycles")
        if cycles < 0:
            raise InvalidConfig("run_timer_cycles", "cycles >= 0", cycles)
        executed = 0
        for _ in range(cycles):
            executed += self.advance_by(cycle_ms)
        return executed

    # ============================================================
    # Suspension points
    # ============================================================

    async def flush_pending_work(self) -> int:
        """
        Drain microtasks and zero-delay (already due) callbacks, yielding to
        the asyncio loop between rounds, until nothing more is ready.

        Each round is a snapshot: it runs the microtasks queued and the due
        entries scheduled before the round started. Work those callbacks
        schedule waits for the next round, so FLUSH_ROUND_LIMIT bounds a
        callback that keeps rescheduling itself.

        Returns:
            Number of callbacks executed

        Raises:
            InvalidState: Still not settled after FLUSH_ROUND_LIMIT rounds
        """
        executed = 0
        for _ in range(FLUSH_ROUND_LIMIT):
            watermark = self._next_seq
            ran = self._drain_microtasks("flush_pending_work", snapshot=True)
            if self._virtual is not None:
                ran += self._run_due_now(watermark)
            executed += ran

            await asyncio.sleep(0)
            self._raise_real_errors()

            if ran == 0 and not self._has_ready_work():
                return executed

        log.warn("Pending work never settled", rounds=FLUSH_ROUND_LIMIT, pending=self.pending_count())
        raise InvalidState(
            "flush_pending_work",
            f"settle within {FLUSH_ROUND_LIMIT} rounds",
            f"{self.pending_count()} still pending",
            detail="a callback keeps rescheduling itself",
        )

    async def wait_for_real_delay(self, ms: float) -> None:
        """
        Suspend until ms of wall-clock time has passed.

        Raises:
            WrongClockMode: Virtual clock active (no wall-clock timer would fire)
        """
        self._require_real("wait_for_real_delay")
        if not _is_finite(ms) or ms < 0:
            raise InvalidConfig("wait_for_real_delay", "ms >= 0", ms)

        await asyncio.sleep(ms / 1000.0)
        self._drain_microtasks("wait_for_real_delay")
        self._raise_real_errors()

    async def sleep(self, ms: float) -> None:
        """Clock-agnostic suspension: advance virtual time or wait in real time"""
        if self._virtual is not None:
            self.advance_by(ms)
            await asyncio.sleep(0)
        else:
            await self.wait_for_real_delay(ms)

    async def wait_for_condition(
        self,
        predicate: Callable[[], bool],
        timeout_ms: float = 5000,
        interval_ms: float = 50
    ) -> None:
        """
        Poll predicate (inside the update boundary) until it holds.

        Raises:
            TimeoutError: Condition still false after timeout_ms on the active clock
        """
        if not _is_finite(interval_ms) or interval_ms <= 0:
            raise InvalidConfig("wait_for_condition", "interval_ms > 0", interval_ms)

        started = self.now()
        while True:
            with self.boundary.batch():
                satisfied = predicate()
            if satisfied:
                return
            if self.now() - started >= timeout_ms:
                raise TimeoutError(f"Condition not met within {timeout_ms}ms")
            await self.sleep(interval_ms)

    # ============================================================
    # Internals
    # ============================================================

    def _allocate_id(self) -> int:
        callback_id = self._next_id
        self._next_id += 1
        return callback_id

    def _allocate_seq(self) -> int:
        seq = self._next_seq
        self._next_seq += 1
        return seq

    def _schedule(
        self,
        kind: CallbackKind,
        callback: Callable[..., Any],
        args: tuple,
        delay_ms: float,
        interval: Optional[float] = None
    ) -> int:
        entry = ScheduledCallback(
            id=self._allocate_id(),
            kind=kind,
            callback=callback,
            args=args,
            due=self.now() + delay_ms,
            seq=self._allocate_seq(),
            interval=interval,
        )

        if self._virtual is not None:
            self._virtual.push(entry)
        else:
            loop = self._running_loop(kind.name.lower())
            entry.handle = loop.call_later(delay_ms / 1000.0, self._fire_real, entry)

        self._entries[entry.id] = entry
        return entry.id

    def _fire(self, entry: ScheduledCallback) -> None:
        """Run one virtual timer entry (already removed from the queue)"""
        if entry.kind is CallbackKind.INTERVAL:
            # Next occurrence is queued first so the callback can cancel it
            entry.due += entry.interval
            entry.seq = self._allocate_seq()
            self._virtual.push(entry)
        else:
            entry.active = False
            self._entries.pop(entry.id, None)
        self._invoke(entry)

    def _fire_real(self, entry: ScheduledCallback) -> None:
        """asyncio loop callback for real-clock entries"""
        if not entry.active:
            return
        try:
            self._drain_microtasks("real_clock_callback")
            if entry.kind is CallbackKind.INTERVAL:
                entry.due = self._real.now() + entry.interval
                entry.seq = self._allocate_seq()
                loop = asyncio.get_running_loop()
                entry.handle = loop.call_later(entry.interval / 1000.0, self._fire_real, entry)
            else:
                entry.active = False
                self._entries.pop(entry.id, None)
            self._invoke(entry)
            self._drain_microtasks("real_clock_callback")
        except Exception as e:
            log.error(f"Real-clock callback failed: {entry.description}", error=str(e))
            self._real_errors.append(e)

    def _invoke(self, entry: ScheduledCallback) -> None:
        with self.boundary.batch():
            if entry.kind is CallbackKind.ANIMATION_FRAME:
                entry.callback(self.now())
            else:
                entry.callback(*entry.args)

    def _drain_microtasks(self, operation: str, snapshot: bool = False) -> int:
        """
        Run queued microtasks.

        A full drain also runs microtasks queued while draining, up to
        run_all_limit of them. A snapshot drain stops after the ones that
        were queued when it started.

        Raises:
            InvalidState: A full drain exceeded run_all_limit
        """
        remaining = len(self._microtasks) if snapshot else None
        executed = 0
        while self._microtasks and remaining != 0:
            if remaining is not None:
                remaining -= 1
            elif executed >= self.run_all_limit:
                raise InvalidState(
                    operation,
                    f"drain microtasks within {self.run_all_limit} callbacks",
                    f"{len(self._microtasks)} still queued",
                    detail="a microtask keeps re-queuing itself",
                )
            entry = self._microtasks.popleft()
            if not entry.active:
                continue
            entry.active = False
            self._entries.pop(entry.id, None)
            self._invoke(entry)
            executed += 1
        return executed

    def _run_due_now(self, watermark: int) -> int:
        """Virtual entries due at the current instant and scheduled before `watermark`"""
        clock = self._virtual
        executed = 0
        while True:
            entry = clock.peek()
            if entry is None or entry.due > clock.now or entry.seq >= watermark:
                return executed
            clock.pop_due(entry.due)
            self._fire(entry)
            executed += 1
            executed += self._drain_microtasks("flush_pending_work")

    def _has_ready_work(self) -> bool:
        if any(e.active for e in self._microtasks):
            return True
        if self._virtual is not None:
            entry = self._virtual.peek()
            return entry is not None and entry.due <= self._virtual.now
        now = self._real.now()
        return any(
            e.kind is not CallbackKind.MICROTASK and e.due <= now
            for e in self._entries.values()
        )

    def _raise_real_errors(self) -> None:
        if self._real_errors:
            error = self._real_errors.pop(0)
            self._real_errors.clear()
            raise error

    def _running_loop(self, operation: str) -> asyncio.AbstractEventLoop:
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            raise InvalidState(
                operation,
                "running asyncio loop (real clock)",
                "no running loop",
                detail="call use_virtual_clock() for synchronous tests",
            ) from None

    def _require_virtual(self, operation: str) -> VirtualClock:
        if self._virtual is None:
            log.warn(f"{operation} refused under real clock")
            raise WrongClockMode(operation, "virtual clock", "real clock")
        return self._virtual

    def _require_real(self, operation: str) -> None:
        if self._virtual is not None:
            log.warn(f"{operation} refused under virtual clock")
            raise WrongClockMode(operation, "real clock", "virtual clock")

    def _require_no_pending(self, operation: str) -> None:
        if self._entries:
            raise InvalidState(
                operation,
                "no pending callbacks",
                f"{len(self._entries)} pending",
                detail="cancel them or call restore() first",
            )

    def __repr__(self):
        return f"TimerBridge({self._mode.name}, now={self.now():g}ms, pending={len(self._entries)})"


def _is_finite(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _clamp_delay(operation: str, delay_ms: float) -> float:
    if not isinstance(delay_ms, (int, float)) or isinstance(delay_ms, bool) or math.isnan(delay_ms):
        raise InvalidConfig(operation, "numeric delay_ms", delay_ms)
    if math.isinf(delay_ms):
        raise InvalidConfig(operation, "finite delay_ms", delay_ms)
    return max(0.0, float(delay_ms))
