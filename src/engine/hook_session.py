"""
Hook Session

Stand-in for the host framework's isolated hook-evaluation primitive.

A hook here is any callable `hook_fn(context, props)`; the session renders
it once on mount and again after every batch of state updates, keeping the
last return value in `result.current`. The context gives the hook the
current MockAnimationState plus a way to trigger transitions.

When a PhaseSimulator is wired in, its phase changes drive the state
machine:

    animating → running     paused → paused
    completed → completed   cancelled → cancelled
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, TypeVar, Union

from engine.phase_simulator import PhaseSimulator
from engine.state_machine import AnimationStateMachine
from engine.update_boundary import BatchedUpdates, IUpdateBoundary
from models.animation_state import MockAnimationState, create_mock_animation_state
from models.enums import AnimationPhase, AnimationState, LogCategory
from models.errors import StaleResultAccess
from models.keyframe import KeyframeStep
from models.transition import TransitionRecord
from utils.enum_helper import EnumHelper
from utils.logger import get_logger

log = get_logger().for_category(LogCategory.HOOK)

R = TypeVar("R")

PHASE_TO_STATE: Dict[AnimationPhase, AnimationState] = {
    AnimationPhase.ANIMATING: AnimationState.RUNNING,
    AnimationPhase.PAUSED: AnimationState.PAUSED,
    AnimationPhase.COMPLETED: AnimationState.COMPLETED,
    AnimationPhase.CANCELLED: AnimationState.CANCELLED,
}


class AnimationContext:
    """What the hook under test receives on every render"""

    def __init__(self, session: "HookSession"):
        self._session = session

    @property
    def state(self) -> MockAnimationState:
        return self._session.get_animation_state()

    @property
    def machine(self) -> AnimationStateMachine:
        return self._session.machine

    @property
    def simulator(self) -> Optional[PhaseSimulator]:
        return self._session.simulator

    def trigger_transition(self, to, trigger: Optional[str] = None) -> TransitionRecord:
        return self._session.trigger_transition(to, trigger)

    def update_state(self, **updates) -> None:
        self._session.update_state(**updates)


class HookSession(Generic[R]):
    """
    One mounted hook

    State updates always go through the update boundary; the session
    re-renders once per flushed update.
    """

    def __init__(
        self,
        hook_fn: Callable[[AnimationContext, Any], R],
        initial_props: Any = None,
        initial_animation_state: Union[MockAnimationState, Mapping[str, object], None] = None,
        simulator: Optional[PhaseSimulator] = None,
        machine: Optional[AnimationStateMachine] = None,
        boundary: Optional[IUpdateBoundary] = None,
        on_unmount: Optional[Callable[["HookSession"], None]] = None
    ):
        if initial_animation_state is None:
            state = MockAnimationState()
        elif isinstance(initial_animation_state, MockAnimationState):
            state = initial_animation_state
        else:
            state = create_mock_animation_state(**_state_fields(initial_animation_state))

        self._hook_fn = hook_fn
        self._props = initial_props
        self._state = state
        self.machine = machine or AnimationStateMachine(state.current_state)
        self.simulator = simulator
        self.boundary = boundary or BatchedUpdates()
        self.context = AnimationContext(self)
        self._on_unmount = on_unmount

        self._current: Optional[R] = None
        self._mounted = False
        self._unmounted = False
        self._unsubscribers: List[Callable[[], None]] = []
        self.render_count = 0

        if machine is not None and machine.current_state != state.current_state:
            self._state = self._state.updated({"current_state": machine.current_state})
        if machine is not None and machine.get_transition_history():
            self._state = self._state.updated({
                "previous_state": machine.previous_state,
                "transitions": machine.get_transition_history(),
            })
        if simulator is not None and state.duration is None:
            self._state = self._state.updated({"duration": simulator.config.duration})

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def mount(self) -> "HookSession[R]":
        self._require_mounted("HookSession.mount", expect_mounted=False)

        self._unsubscribers.append(self.machine.on_state_change(self._on_machine_change))
        if self.simulator is not None:
            self._unsubscribers.append(self.simulator.on_phase_change(self._on_phase_change))

        self._mounted = True
        with self.boundary.batch():
            self.boundary.enqueue(self._render)

        log.debug(
            "Hook mounted",
            hook=getattr(self._hook_fn, "__qualname__", repr(self._hook_fn)),
            state=self._state.current_state.value,
            simulator=self.simulator.name if self.simulator else None
        )
        return self

    def unmount(self) -> None:
        """Detach from machine and simulator; later accessors raise StaleResultAccess"""
        if self._unmounted:
            return
        self._unmounted = True
        self._mounted = False

        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

        log.debug("Hook unmounted", renders=self.render_count)
        if self._on_unmount is not None:
            self._on_unmount(self)

    @property
    def is_mounted(self) -> bool:
        return self._mounted

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def current(self) -> R:
        self._require_mounted("result.current")
        return self._current

    def get_animation_state(self) -> MockAnimationState:
        self._require_mounted("get_animation_state")
        if self.simulator is None:
            return self._state
        return self._state.updated({
            "progress": self.simulator.get_progress() / 100.0,
            "iteration_count": self.simulator.current_iteration,
        })

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def trigger_transition(self, to, trigger: Optional[str] = None) -> TransitionRecord:
        """Transition the machine inside the update boundary; re-renders on flush"""
        self._require_mounted("trigger_transition")
        with self.boundary.batch():
            return self.machine.transition(EnumHelper.coerce(AnimationState, to), trigger)

    def update_state(self, **updates) -> None:
        """Partial MockAnimationState update (e.g. progress=0.5), applied on flush"""
        self._require_mounted("update_state")
        fields = _state_fields(updates)

        def apply() -> None:
            self._state = self._state.updated(fields)
            self._render()

        with self.boundary.batch():
            self.boundary.enqueue(apply)

    def rerender(self, new_props: Any = None) -> None:
        self._require_mounted("rerender")
        if new_props is not None:
            self._props = new_props
        with self.boundary.batch():
            self.boundary.enqueue(self._render)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _render(self) -> None:
        if not self._mounted:
            return
        self.render_count += 1
        self._current = self._hook_fn(self.context, self._props)

    def _on_machine_change(self, state: AnimationState) -> None:
        def apply() -> None:
            self._state = self._state.updated({
                "current_state": self.machine.current_state,
                "previous_state": self.machine.previous_state,
                "transitions": self.machine.get_transition_history(),
            })
            self._render()

        self.boundary.enqueue(apply)

    def _on_phase_change(self, phase: AnimationPhase, step: KeyframeStep) -> None:
        target = PHASE_TO_STATE.get(phase)
        if target is None or self.machine.current_state == target:
            return
        log.debug("Simulator phase drives transition", phase=phase.value, to_state=target.value)
        with self.boundary.batch():
            self.machine.transition(target, f"phase:{phase.value}")

    def _require_mounted(self, operation: str, expect_mounted: bool = True) -> None:
        if expect_mounted and self._unmounted:
            raise StaleResultAccess(operation, "mounted hook session", "unmounted")
        if not expect_mounted and (self._mounted or self._unmounted):
            raise StaleResultAccess(
                operation, "fresh hook session", "unmounted" if self._unmounted else "already mounted"
            )

    def __repr__(self):
        status = "unmounted" if self._unmounted else ("mounted" if self._mounted else "new")
        return f"HookSession({status}, renders={self.render_count})"


class HookResultRef(Generic[R]):
    """`result.current` holder; reading after unmount raises StaleResultAccess"""

    def __init__(self, session: HookSession[R]):
        self._session = session

    @property
    def current(self) -> R:
        return self._session.current


@dataclass
class AnimationHookResult(Generic[R]):
    """Handles returned by render_animation_hook()"""
    session: HookSession[R]
    result: HookResultRef[R]

    def trigger_transition(self, to, trigger: Optional[str] = None) -> TransitionRecord:
        return self.session.trigger_transition(to, trigger)

    def get_animation_state(self) -> MockAnimationState:
        return self.session.get_animation_state()

    def rerender(self, new_props: Any = None) -> None:
        self.session.rerender(new_props)

    def unmount(self) -> None:
        self.session.unmount()

    @property
    def machine(self) -> AnimationStateMachine:
        return self.session.machine


def render_animation_hook(
    hook_fn: Callable[[AnimationContext, Any], R],
    initial_props: Any = None,
    initial_animation_state: Union[MockAnimationState, Mapping[str, object], None] = None,
    simulator: Optional[PhaseSimulator] = None,
    machine: Optional[AnimationStateMachine] = None,
    boundary: Optional[IUpdateBoundary] = None,
    on_unmount: Optional[Callable[[HookSession], None]] = None
) -> AnimationHookResult[R]:
    """
    Mount hook_fn in a fresh session with a mock animation context.

    Example:
        def use_label(ctx, props):
            return f"{props['prefix']}:{ctx.state.current_state.value}"

        hook = render_animation_hook(use_label, initial_props={"prefix": "hero"})
        hook.result.current                     # "hero:idle"
        hook.trigger_transition("running", "click")
        hook.result.current                     # "hero:running"
    """
    session = HookSession(
        hook_fn,
        initial_props=initial_props,
        initial_animation_state=initial_animation_state,
        simulator=simulator,
        machine=machine,
        boundary=boundary,
        on_unmount=on_unmount,
    ).mount()
    return AnimationHookResult(session=session, result=HookResultRef(session))


def _state_fields(data: Mapping[str, object]) -> Dict[str, object]:
    """Accept camelCase keys and state strings ('running') in state overrides"""
    fields: Dict[str, object] = {}
    for key, value in data.items():
        name = {
            "currentState": "current_state",
            "previousState": "previous_state",
            "iterationCount": "iteration_count",
        }.get(key, key)
        if name in ("current_state", "previous_state") and value is not None:
            value = EnumHelper.coerce(AnimationState, value)
        fields[name] = value
    return fields
