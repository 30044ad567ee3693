"""
State Machine

Generic finite-state tracker with an append-only transition history.

Any state change is legal by default; attach an AllowedTransitions
validator to reject pairs outside a table. reset() is the only way to
drop history and is meant to be called at a scenario boundary.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Generic, Iterable, List, Optional, Set, Tuple, TypeVar

from models.enums import AnimationState, LogCategory
from models.errors import InvalidTransition, SequenceMismatch
from models.transition import TransitionRecord
from utils.enum_helper import EnumHelper
from utils.logger import get_logger

log = get_logger().for_category(LogCategory.STATE)

S = TypeVar("S")


def _wall_clock_ms() -> float:
    return time.time() * 1000.0


class AllowedTransitions(Generic[S]):
    """
    Validator holding the set of permitted (from, to) pairs

    Example:
        validator = AllowedTransitions.from_mapping({
            AnimationState.IDLE: [AnimationState.RUNNING],
            AnimationState.RUNNING: [AnimationState.PAUSED, AnimationState.COMPLETED],
        })
        machine = StateMachine(AnimationState.IDLE, validator=validator)
    """

    def __init__(self, pairs: Iterable[Tuple[S, S]]):
        self._pairs: Set[Tuple[S, S]] = set(pairs)

    @classmethod
    def from_mapping(cls, mapping: Dict[S, Iterable[S]]) -> "AllowedTransitions[S]":
        return cls((src, dst) for src, targets in mapping.items() for dst in targets)

    def allows(self, from_state: S, to_state: S) -> bool:
        return (from_state, to_state) in self._pairs

    def allowed_from(self, from_state: S) -> List[S]:
        return [dst for src, dst in self._pairs if src == from_state]

    @property
    def pairs(self) -> frozenset:
        return frozenset(self._pairs)


class StateMachine(Generic[S]):
    """
    Finite-state tracker

    Attributes (read-only):
        current_state / previous_state
        initial_state: State restored by reset()

    Example:
        machine = StateMachine(AnimationState.IDLE)
        machine.transition(AnimationState.RUNNING, "start")
        machine.get_transition_history()[0].from_state   # AnimationState.IDLE
    """

    def __init__(
        self,
        initial_state: S,
        validator: Optional[AllowedTransitions[S]] = None,
        now: Optional[Callable[[], float]] = None
    ):
        """
        Args:
            initial_state: Starting state
            validator: Optional table of allowed (from, to) pairs
            now: Timestamp source in ms (defaults to wall clock)
        """
        self._initial_state: S = initial_state
        self._state: S = initial_state
        self._previous: Optional[S] = None
        self._history: List[TransitionRecord[S]] = []
        self._validator = validator
        self._now = now or _wall_clock_ms
        self._listeners: List[Callable[[S], None]] = []

    # ------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------

    def get_current_state(self) -> S:
        return self._state

    @property
    def current_state(self) -> S:
        return self._state

    @property
    def previous_state(self) -> Optional[S]:
        return self._previous

    @property
    def initial_state(self) -> S:
        return self._initial_state

    def get_transition_history(self) -> Tuple[TransitionRecord[S], ...]:
        """Immutable snapshot; later transitions never show up in it"""
        return tuple(self._history)

    # ------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------

    def set_validator(self, validator: Optional[AllowedTransitions[S]]) -> None:
        """Attach (or detach with None) a transition validator"""
        self._validator = validator

    def transition(self, to: S, trigger: Optional[str] = None) -> TransitionRecord[S]:
        """
        Move to `to`, appending a record to the history.

        Raises:
            InvalidTransition: A validator is attached and rejects (current, to)
        """
        from_state = self._state

        if self._validator is not None and not self._validator.allows(from_state, to):
            log.warn(
                "Transition rejected",
                from_state=_label(from_state),
                to_state=_label(to),
                trigger=trigger
            )
            raise InvalidTransition(
                "StateMachine.transition",
                self._validator.allowed_from(from_state) or "no transition",
                f"{_label(from_state)} → {_label(to)}",
            )

        record = TransitionRecord(
            from_state=from_state,
            to_state=to,
            timestamp=self._now(),
            trigger=trigger,
        )
        self._history.append(record)
        self._previous = from_state
        self._state = to

        log.debug(
            f"{_label(from_state)} → {_label(to)}",
            trigger=trigger,
            count=len(self._history)
        )

        for listener in list(self._listeners):
            listener(to)

        return record

    def on_state_change(self, listener: Callable[[S], None]) -> Callable[[], None]:
        """Subscribe to state changes; returns an unsubscribe callable"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def reset(self, initial_state: Optional[S] = None) -> None:
        """
        Clear history and return to a fresh initial state.

        Args:
            initial_state: New initial state (keeps the constructor's when None)
        """
        if initial_state is not None:
            self._initial_state = initial_state
        self._state = self._initial_state
        self._previous = None
        self._history = []
        log.debug("State machine reset", initial_state=_label(self._initial_state))

    def __repr__(self):
        return f"StateMachine({_label(self._state)}, transitions={len(self._history)})"


# ============================================================
# Animation-specific instantiation
# ============================================================

class AnimationStateMachine(StateMachine[AnimationState]):
    """StateMachine over AnimationState that also accepts 'idle'-style strings"""

    def __init__(
        self,
        initial_state=AnimationState.IDLE,
        validator: Optional[AllowedTransitions[AnimationState]] = None,
        now: Optional[Callable[[], float]] = None
    ):
        super().__init__(EnumHelper.coerce(AnimationState, initial_state), validator, now)

    def transition(self, to, trigger: Optional[str] = None) -> TransitionRecord[AnimationState]:
        return super().transition(EnumHelper.coerce(AnimationState, to), trigger)

    def reset(self, initial_state=None) -> None:
        if initial_state is not None:
            initial_state = EnumHelper.coerce(AnimationState, initial_state)
        super().reset(initial_state)


# Opt-in strict table for animation lifecycles
DEFAULT_ANIMATION_TRANSITIONS: AllowedTransitions[AnimationState] = AllowedTransitions.from_mapping({
    AnimationState.IDLE: [AnimationState.RUNNING, AnimationState.CANCELLED],
    AnimationState.RUNNING: [AnimationState.PAUSED, AnimationState.COMPLETED, AnimationState.CANCELLED],
    AnimationState.PAUSED: [AnimationState.RUNNING, AnimationState.CANCELLED],
    AnimationState.COMPLETED: [AnimationState.IDLE],
    AnimationState.CANCELLED: [AnimationState.IDLE],
})


# ============================================================
# Expected-sequence validation
# ============================================================

@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: Tuple[str, ...]
    actual_transitions: Tuple[Tuple[object, object], ...]


class StateTransitionValidator:
    """
    Verifies that a history matches an expected (from, to) sequence

    Example:
        validator = StateTransitionValidator().expect("idle", "running").expect("running", "completed")
        result = validator.validate(machine.get_transition_history())
    """

    def __init__(self):
        self._expected: List[Tuple[object, object]] = []

    def expect(self, from_state, to_state) -> "StateTransitionValidator":
        self._expected.append((from_state, to_state))
        return self

    def validate(self, transitions: Iterable[TransitionRecord]) -> ValidationResult:
        errors: List[str] = []
        actual = tuple((t.from_state, t.to_state) for t in transitions)

        if len(actual) != len(self._expected):
            errors.append(f"Expected {len(self._expected)} transitions, got {len(actual)}")

        for i, (got, want) in enumerate(zip(actual, self._expected)):
            if not (_same_state(got[0], want[0]) and _same_state(got[1], want[1])):
                errors.append(
                    f"Transition {i}: expected {_label(want[0])} → {_label(want[1])}, "
                    f"got {_label(got[0])} → {_label(got[1])}"
                )

        return ValidationResult(is_valid=not errors, errors=tuple(errors), actual_transitions=actual)

    def reset(self) -> None:
        self._expected = []


@dataclass
class StateMachineKit:
    """Bundle returned by create_test_state_machine()"""
    machine: AnimationStateMachine
    validator: StateTransitionValidator = field(default_factory=StateTransitionValidator)

    def expect_transition(self, from_state, to_state) -> None:
        self.validator.expect(from_state, to_state)

    def validate_transitions(self) -> None:
        """
        Raises:
            SequenceMismatch: History differs from the expected sequence
        """
        result = self.validator.validate(self.machine.get_transition_history())
        if not result.is_valid:
            raise SequenceMismatch(
                "validate_transitions",
                "expected transition sequence",
                [f"{_label(a)} → {_label(b)}" for a, b in result.actual_transitions],
                detail="; ".join(result.errors),
            )

    def reset(self) -> None:
        self.machine.reset()
        self.validator.reset()


def create_test_state_machine(
    initial_state=AnimationState.IDLE,
    now: Optional[Callable[[], float]] = None
) -> StateMachineKit:
    """Machine + expected-sequence validator for state-transition tests"""
    return StateMachineKit(machine=AnimationStateMachine(initial_state, now=now))


# ============================================================
# Predicates
# ============================================================

def is_animation_running(state: AnimationState) -> bool:
    return state == AnimationState.RUNNING


def is_animation_complete(state: AnimationState) -> bool:
    return state == AnimationState.COMPLETED


def is_animation_active(state: AnimationState) -> bool:
    return state in (AnimationState.RUNNING, AnimationState.PAUSED)


def validate_state_transition(from_state, to_state, transitions: Iterable[TransitionRecord]) -> bool:
    """True if any recorded transition went from_state → to_state"""
    return any(
        _same_state(t.from_state, from_state) and _same_state(t.to_state, to_state)
        for t in transitions
    )


def _same_state(a, b) -> bool:
    return a == b or _label(a) == _label(b)


def _label(state) -> str:
    return str(getattr(state, "value", state))
