"""
Phase Simulator

Derives keyframe phases from elapsed time on a supplied clock, with no
rendering engine involved.

    elapsed    = clock.now() - start_time - paused_time   (frozen while paused)
    percentage = clamp(elapsed / duration, 0, 1) * 100
    phase      = before-start  at 0%
                 animating     between (paused while paused)
                 completed     at elapsed >= duration
                 cancelled     after cancel(), whatever the percentage

The simulator schedules one clock callback per step boundary and
re-derives the phase on each tick; listeners are told about phase changes.

Teardown is guarded by a single `finalized` flag checked at the top of
cancel(), destroy() and the notification dispatcher, and both public
operations go through one _finalize() routine that runs at most once.
A listener that calls destroy() while being told about the cancellation
therefore returns immediately instead of recursing.
"""

import asyncio
import math
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Mapping, Optional, Tuple, Union

from engine.clock import IClock
from models.enums import AnimationDirection, AnimationPhase, FillMode, LogCategory
from models.errors import InvalidConfig, InvalidState, SequenceMismatch
from models.keyframe import AnimationTimeline, KeyframeAnimationConfig, KeyframeStep
from models.transition import get_easing
from utils.enum_helper import EnumHelper
from utils.logger import get_logger

log = get_logger().for_category(LogCategory.SIMULATOR)

PhaseListener = Callable[[AnimationPhase, KeyframeStep], None]

DEFAULT_STEPS = 10
# Float slack when comparing a tick's due time with a step boundary
_EPSILON = 1e-9


class PhaseSimulator:
    """
    Time-driven keyframe phase simulator

    Example:
        bridge.use_virtual_clock()
        sim = PhaseSimulator({"name": "x", "duration": 1000}, clock=bridge)
        sim.start()
        bridge.advance_by(500)
        sim.get_current_phase()     # AnimationPhase.ANIMATING, progress 50
        bridge.advance_by(500)
        sim.get_current_phase()     # AnimationPhase.COMPLETED
    """

    def __init__(
        self,
        config: Union[KeyframeAnimationConfig, Mapping[str, object]],
        clock: IClock,
        default_steps: int = DEFAULT_STEPS,
        on_finalize: Optional[Callable[["PhaseSimulator"], None]] = None
    ):
        """
        Args:
            config: Animation config (or a dict of its fields)
            clock: Time source and scheduler (normally the TimerBridge)
            default_steps: Step count used when the config leaves steps unset
            on_finalize: Called once when the simulator is cancelled or destroyed

        Raises:
            InvalidConfig: Empty name, duration <= 0, steps < 1, non-finite iterations
        """
        if isinstance(config, Mapping):
            config = _config_from_mapping(config)
        self.config: KeyframeAnimationConfig = config.validate()
        self._clock = clock
        self._steps: int = config.steps or default_steps
        self._easing = get_easing(config.timing_function)
        self._on_finalize = on_finalize

        self._listeners: List[PhaseListener] = []
        self._started = False
        self._finalized = False
        self._cancelled = False
        self._start_time: Optional[float] = None
        self._end_time: Optional[float] = None
        self._stopped_at: Optional[float] = None
        self._paused_at: Optional[float] = None
        self._paused_total = 0.0
        self._tick_id: Optional[int] = None
        self._phase = AnimationPhase.BEFORE_START
        self._recorded: List[KeyframeStep] = []

    # ============================================================
    # Control
    # ============================================================

    def start(self) -> None:
        """
        Raises:
            InvalidState: Already started, or already cancelled/destroyed
        """
        if self._started or self._finalized:
            log.warn("start() refused", name=self.name, state=self._describe())
            raise InvalidState("PhaseSimulator.start", "idle simulator", self._describe())

        self._started = True
        self._start_time = self._clock.now()
        self._phase = AnimationPhase.BEFORE_START

        step = self._record()
        log.debug("Simulator started", name=self.name, duration=self.config.duration, steps=self._steps)
        self._notify(AnimationPhase.BEFORE_START, step)

        if not self._finalized:
            self._refresh()
            self._schedule_tick()

    def pause(self) -> None:
        """
        Freeze elapsed time.

        Raises:
            InvalidState: Not started, already paused, or in a terminal phase
        """
        self._require_running("PhaseSimulator.pause")
        if self._paused_at is not None:
            raise InvalidState("PhaseSimulator.pause", "running simulator", "paused")

        self._paused_at = self._clock.now()
        self._clear_tick()
        log.debug("Simulator paused", name=self.name, progress=self.get_progress())
        self._refresh()

    def resume(self) -> None:
        """
        Raises:
            InvalidState: Not paused
        """
        self._require_running("PhaseSimulator.resume")
        if self._paused_at is None:
            raise InvalidState("PhaseSimulator.resume", "paused simulator", self._describe())

        self._paused_total += self._clock.now() - self._paused_at
        self._paused_at = None
        log.debug("Simulator resumed", name=self.name, progress=self.get_progress())
        self._refresh()
        if not self._finalized:
            self._schedule_tick()

    def cancel(self) -> None:
        """Force the cancelled phase (terminal). No-op once finalized."""
        if self._finalized:
            return
        self._finalize("cancel")

    def destroy(self) -> None:
        """
        Release the simulator: cancel if still live, drop all listeners.

        Safe to call repeatedly, including from a listener notified by this
        simulator's own cancellation.
        """
        if self._finalized:
            return
        self._finalize("destroy")

    def on_phase_change(self, listener: PhaseListener) -> Callable[[], None]:
        """Subscribe listener(phase, step); returns an unsubscribe callable"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ============================================================
    # Queries
    # ============================================================

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def finalized(self) -> bool:
        return self._finalized

    @property
    def started(self) -> bool:
        return self._started

    @property
    def is_paused(self) -> bool:
        return self._paused_at is not None

    @property
    def step_count(self) -> int:
        return self._steps

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def elapsed(self) -> float:
        """Active (unpaused) time since start() in ms"""
        if not self._started:
            return 0.0
        if self._paused_at is not None:
            reference = self._paused_at
        elif self._stopped_at is not None:
            reference = self._stopped_at
        else:
            reference = self._clock.now()
        return max(0.0, reference - self._start_time - self._paused_total)

    def get_progress(self) -> float:
        """Percentage (0-100) within the current iteration; 100 once completed"""
        elapsed = self.elapsed()
        duration = self.config.duration
        if self._reached_end(elapsed):
            return 100.0
        return _clamp((elapsed % duration) / duration, 0.0, 1.0) * 100.0

    @property
    def current_iteration(self) -> int:
        """Completed iterations so far"""
        elapsed = min(self.elapsed(), self.config.total_duration)
        return int(elapsed // self.config.duration)

    def get_current_phase(self) -> AnimationPhase:
        if self._finalized or self._phase.is_terminal:
            return self._phase
        return self._derive_phase()

    def get_current_step(self) -> KeyframeStep:
        percentage = self.get_progress()
        return KeyframeStep(
            percentage=percentage,
            phase=self.get_current_phase(),
            timestamp=self._clock.now(),
            properties=self._properties_at(percentage),
        )

    def get_timeline(self) -> AnimationTimeline:
        """Immutable snapshot of recorded steps"""
        return AnimationTimeline(
            name=self.name,
            duration=self.config.duration,
            steps=tuple(self._recorded),
            start_time=self._start_time,
            end_time=self._end_time,
            iteration_count=self.config.iteration_count,
            current_iteration=self.current_iteration,
        )

    # ============================================================
    # Internals
    # ============================================================

    def _derive_phase(self) -> AnimationPhase:
        if self._cancelled:
            return AnimationPhase.CANCELLED
        if not self._started:
            return AnimationPhase.BEFORE_START

        elapsed = self.elapsed()
        if self._reached_end(elapsed):
            return AnimationPhase.COMPLETED
        if elapsed <= 0:
            return AnimationPhase.BEFORE_START
        if self._paused_at is not None:
            return AnimationPhase.PAUSED
        return AnimationPhase.ANIMATING

    def _reached_end(self, elapsed: float) -> bool:
        return elapsed >= self.config.total_duration - _EPSILON

    def _refresh(self) -> bool:
        """Re-derive the phase and notify if it changed"""
        phase = self._derive_phase()
        if phase == self._phase:
            return False

        self._phase = phase
        if phase is AnimationPhase.COMPLETED:
            self._end_time = self._clock.now()
            self._clear_tick()
            log.debug("Simulator completed", name=self.name, end_time=self._end_time)

        step = self._record()
        self._notify(phase, step)
        return True

    def _on_tick(self) -> None:
        self._tick_id = None
        if self._finalized:
            return

        if not self._refresh():
            self._record()

        if not self._finalized and not self._phase.is_terminal and self._paused_at is None:
            self._schedule_tick()

    def _schedule_tick(self) -> None:
        if self._tick_id is not None or self._phase.is_terminal:
            return

        elapsed = self.elapsed()
        total = self.config.total_duration
        duration, steps = self.config.duration, self._steps

        boundary = math.floor(elapsed * steps / duration + _EPSILON) + 1
        due = min(boundary * duration / steps, total)
        if due - elapsed <= _EPSILON:
            due = min((boundary + 1) * duration / steps, total)

        self._tick_id = self._clock.set_timeout(self._on_tick, max(0.0, due - elapsed))

    def _clear_tick(self) -> None:
        if self._tick_id is not None:
            self._clock.cancel(self._tick_id)
            self._tick_id = None

    def _finalize(self, reason: str) -> None:
        """Single teardown path shared by cancel() and destroy(); runs at most once"""
        if self._finalized:
            return
        self._finalized = True
        self._clear_tick()

        if self._started and self._stopped_at is None:
            self._stopped_at = self._clock.now() if self._paused_at is None else self._paused_at

        keeps_result = reason == "destroy" and self._phase is AnimationPhase.COMPLETED
        changed = False
        if not keeps_result and self._phase is not AnimationPhase.CANCELLED:
            self._cancelled = True
            self._phase = AnimationPhase.CANCELLED
            self._end_time = self._clock.now()
            changed = True

        log.debug(f"Simulator finalized by {reason}", name=self.name, phase=self._phase.value)

        try:
            if changed:
                step = self._record()
                self._notify(AnimationPhase.CANCELLED, step, final=True)
        finally:
            self._listeners.clear()
            if self._on_finalize is not None:
                self._on_finalize(self)

    def _notify(self, phase: AnimationPhase, step: KeyframeStep, final: bool = False) -> None:
        """Dispatch to listeners; no-op once finalized except for the one final notice"""
        if self._finalized and not final:
            return
        for listener in list(self._listeners):
            if self._finalized and not final:
                break
            listener(phase, step)

    def _record(self) -> KeyframeStep:
        percentage = self.get_progress()
        phase = self._phase if (self._finalized or self._phase.is_terminal) else self._derive_phase()
        step = KeyframeStep(
            percentage=percentage,
            phase=phase,
            timestamp=self._clock.now(),
            properties=self._properties_at(percentage),
        )
        self._recorded.append(step)
        return step

    def _properties_at(self, percentage: float) -> Dict[str, str]:
        progress = percentage / 100.0
        iteration = min(self.current_iteration, self.config.iteration_count - 1)
        if _is_reversed(self.config.direction, iteration):
            progress = 1.0 - progress
        return interpolate_properties(progress, self._easing)

    def _require_running(self, operation: str) -> None:
        if not self._started or self._finalized or self._phase.is_terminal:
            log.warn(f"{operation} refused", name=self.name, state=self._describe())
            raise InvalidState(operation, "started, non-terminal simulator", self._describe())

    def _describe(self) -> str:
        if self._finalized:
            return f"finalized ({self._phase.value})"
        if not self._started:
            return "idle"
        return self.get_current_phase().value

    def __repr__(self):
        return f"PhaseSimulator({self.name!r}, {self._describe()}, {self.get_progress():.0f}%)"


# ============================================================
# Pure helpers
# ============================================================

def interpolate_properties(progress: float, easing: Callable[[float], float]) -> Dict[str, str]:
    """Mock style values at a 0-1 progress (opacity, translateY, scale)"""
    eased = easing(_clamp(progress, 0.0, 1.0))
    return {
        "opacity": _fmt(_lerp(0.0, 1.0, eased)),
        "transform": f"translateY({_fmt(_lerp(20.0, 0.0, eased))}px)",
        "scale": _fmt(_lerp(0.8, 1.0, eased)),
    }


def simulate_phases(
    duration: float,
    steps: int,
    timing_function: str = "linear",
    start_time: float = 0.0
) -> Tuple[KeyframeStep, ...]:
    """
    Evenly spaced samples, not time-driven: steps + 1 KeyframeSteps at
    percentage = 100 * k / steps.

    Example:
        simulate_phases(duration=2000, steps=4)
        # percentages 0, 25, 50, 75, 100
        # phases before-start, animating, animating, animating, completed

    Raises:
        InvalidConfig: duration <= 0, steps < 1, unknown timing function
    """
    if not isinstance(duration, (int, float)) or isinstance(duration, bool) \
            or not math.isfinite(duration) or duration <= 0:
        raise InvalidConfig("simulate_phases", "duration > 0", duration)
    if not isinstance(steps, int) or isinstance(steps, bool) or steps < 1:
        raise InvalidConfig("simulate_phases", "steps >= 1", steps)
    easing = get_easing(timing_function)
    if easing is None:
        raise InvalidConfig("simulate_phases", "known timing function", timing_function)

    samples = []
    for k in range(steps + 1):
        if k == 0:
            phase = AnimationPhase.BEFORE_START
        elif k == steps:
            phase = AnimationPhase.COMPLETED
        else:
            phase = AnimationPhase.ANIMATING
        samples.append(KeyframeStep(
            percentage=100.0 * k / steps,
            phase=phase,
            timestamp=start_time + duration * k / steps,
            properties=interpolate_properties(k / steps, easing),
        ))
    return tuple(samples)


# ============================================================
# Phase sequence validation
# ============================================================

@dataclass(frozen=True)
class PhaseValidationResult:
    is_valid: bool
    errors: Tuple[str, ...]
    expected_phases: Tuple[AnimationPhase, ...]
    actual_phases: Tuple[AnimationPhase, ...]


class AnimationPhaseValidator:
    """
    Records phases as they happen and compares them to an expected sequence

    Example:
        validator = AnimationPhaseValidator().expect_phase("before-start").expect_phase("completed")
        validator.attach(sim)
        ...
        validator.assert_valid()
    """

    def __init__(self):
        self._expected: List[AnimationPhase] = []
        self._actual: List[Tuple[AnimationPhase, float]] = []

    def expect_phase(self, phase) -> "AnimationPhaseValidator":
        self._expected.append(EnumHelper.coerce(AnimationPhase, phase))
        return self

    def record_phase(self, phase, timestamp: float = 0.0) -> None:
        self._actual.append((EnumHelper.coerce(AnimationPhase, phase), timestamp))

    def attach(self, simulator: PhaseSimulator) -> Callable[[], None]:
        """Record every phase change of simulator; returns the unsubscribe callable"""
        return simulator.on_phase_change(lambda phase, step: self.record_phase(phase, step.timestamp))

    def validate(self) -> PhaseValidationResult:
        errors: List[str] = []
        actual = tuple(phase for phase, _ in self._actual)

        if len(actual) != len(self._expected):
            errors.append(f"Expected {len(self._expected)} phases, got {len(actual)}")

        for i, (got, want) in enumerate(zip(actual, self._expected)):
            if got != want:
                errors.append(f"Phase {i}: expected {want.value}, got {got.value}")

        return PhaseValidationResult(
            is_valid=not errors,
            errors=tuple(errors),
            expected_phases=tuple(self._expected),
            actual_phases=actual,
        )

    def assert_valid(self) -> None:
        result = self.validate()
        if not result.is_valid:
            raise SequenceMismatch(
                "AnimationPhaseValidator",
                list(result.expected_phases),
                list(result.actual_phases),
                detail="; ".join(result.errors),
            )

    def reset(self) -> None:
        self._expected = []
        self._actual = []


# ============================================================
# Named registry of simulators
# ============================================================

class KeyframeTimeline:
    """
    Registry of named simulators sharing one clock

    Example:
        timeline = KeyframeTimeline(bridge)
        timeline.register_animation("fade", {"name": "fade", "duration": 300})
        timeline.start_animation("fade")
        ...
        timeline.clear()    # destroys every simulator
    """

    def __init__(self, clock: IClock, default_steps: int = DEFAULT_STEPS, factory=None):
        """
        Args:
            clock: Shared clock for every registered simulator
            default_steps: Step count for configs without one
            factory: Optional callable(config) -> PhaseSimulator (the harness passes its tracked factory)
        """
        self._clock = clock
        self._default_steps = default_steps
        self._factory = factory
        self._animations: Dict[str, PhaseSimulator] = {}

    def register_animation(
        self,
        name: str,
        config: Union[KeyframeAnimationConfig, Mapping[str, object]]
    ) -> PhaseSimulator:
        if isinstance(config, Mapping):
            config = _config_from_mapping({**config, "name": name})
        elif config.name != name:
            config = _replace_name(config, name)

        existing = self._animations.pop(name, None)
        if existing is not None:
            existing.destroy()

        if self._factory is not None:
            simulator = self._factory(config)
        else:
            simulator = PhaseSimulator(config, self._clock, default_steps=self._default_steps)
        self._animations[name] = simulator
        return simulator

    def start_animation(self, name: str) -> None:
        self._get(name).start()

    def pause_animation(self, name: str) -> None:
        self._get(name).pause()

    def get_animation(self, name: str) -> Optional[PhaseSimulator]:
        return self._animations.get(name)

    def get_all_animations(self) -> Dict[str, PhaseSimulator]:
        return dict(self._animations)

    def clear(self) -> None:
        for simulator in list(self._animations.values()):
            simulator.destroy()
        self._animations.clear()

    def _get(self, name: str) -> PhaseSimulator:
        simulator = self._animations.get(name)
        if simulator is None:
            raise KeyError(f"No animation registered as {name!r}")
        return simulator


async def wait_for_phase(
    simulator: PhaseSimulator,
    bridge,
    target,
    timeout_ms: float = 5000
) -> KeyframeStep:
    """
    Suspend (on the bridge's active clock) until simulator reaches target.

    Raises:
        TimeoutError: Phase not reached within timeout_ms
    """
    target = EnumHelper.coerce(AnimationPhase, target)
    reached: List[KeyframeStep] = []

    def listener(phase: AnimationPhase, step: KeyframeStep) -> None:
        if phase == target and not reached:
            reached.append(step)

    unsubscribe = simulator.on_phase_change(listener)
    try:
        await bridge.wait_for_condition(
            lambda: bool(reached) or simulator.get_current_phase() == target,
            timeout_ms=timeout_ms,
            interval_ms=bridge.frame_interval_ms,
        )
    finally:
        unsubscribe()
    await asyncio.sleep(0)
    return reached[0] if reached else simulator.get_current_step()


def _config_from_mapping(data: Mapping[str, object]) -> KeyframeAnimationConfig:
    values = dict(data)
    if "iterationCount" in values:
        values["iteration_count"] = values.pop("iterationCount")
    if "timingFunction" in values:
        values["timing_function"] = values.pop("timingFunction")
    if "fillMode" in values:
        values["fill_mode"] = values.pop("fillMode")
    if "direction" in values and isinstance(values["direction"], str):
        values["direction"] = EnumHelper.coerce(AnimationDirection, values["direction"])
    if "fill_mode" in values and isinstance(values["fill_mode"], str):
        values["fill_mode"] = EnumHelper.coerce(FillMode, values["fill_mode"])
    try:
        return KeyframeAnimationConfig(**values)
    except TypeError as e:
        raise InvalidConfig("KeyframeAnimationConfig", "known config fields", sorted(values), detail=str(e)) from e


def _replace_name(config: KeyframeAnimationConfig, name: str) -> KeyframeAnimationConfig:
    return replace(config, name=name)


def _is_reversed(direction: AnimationDirection, iteration: int) -> bool:
    if direction is AnimationDirection.REVERSE:
        return True
    if direction is AnimationDirection.ALTERNATE:
        return iteration % 2 == 1
    if direction is AnimationDirection.ALTERNATE_REVERSE:
        return iteration % 2 == 0
    return False


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _lerp(start: float, end: float, progress: float) -> float:
    return start + (end - start) * progress


def _fmt(value: float) -> str:
    return f"{round(value, 4):g}"
