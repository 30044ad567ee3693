"""
Harness Context

One scenario's worth of harness state: the update boundary, timer bridge,
style store, resource registry and teardown coordinator. Every object a
test creates through the context is tracked and released by reset(), so
nothing leaks into the next scenario.
"""

from dataclasses import asdict
from typing import Any, Callable, Mapping, Optional, Union

from engine.hook_session import AnimationHookResult, render_animation_hook
from engine.phase_simulator import KeyframeTimeline, PhaseSimulator
from engine.state_machine import AllowedTransitions, AnimationStateMachine, StateMachineKit
from engine.timer_bridge import TimerBridge
from engine.update_boundary import BatchedUpdates
from lifecycle.handlers import (
    HookTeardownHandler,
    SimulatorTeardownHandler,
    StyleTeardownHandler,
    TimerTeardownHandler,
)
from lifecycle.resource_registry import ResourceRegistry
from lifecycle.teardown_coordinator import TeardownCoordinator
from managers.config_manager import ConfigManager, configure_logging
from models.animation_state import MockAnimationState
from models.enums import AnimationState, ResourceCategory
from models.errors import HarnessError, InvalidConfig
from models.keyframe import COMMON_ANIMATION_CONFIGS, KeyframeAnimationConfig
from models.settings import HarnessSettings
from services.property_store import PropertyMockStore
from utils.enum_helper import EnumHelper
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.LIFECYCLE)


class HarnessContext:
    """
    Scenario-scoped harness

    Example:
        with HarnessContext() as harness:
            harness.timers.use_virtual_clock()
            sim = harness.create_simulator({"name": "fade", "duration": 500})
            sim.start()
            harness.timers.advance_by(500)
            assert sim.get_current_phase() is AnimationPhase.COMPLETED
        # reset(): hooks unmounted, simulators destroyed, clock restored, styles cleared
    """

    def __init__(self, settings: Optional[HarnessSettings] = None):
        """
        Args:
            settings: Pre-built settings (loaded from config/harness.yaml when None)
        """
        if settings is None:
            settings = ConfigManager().load()
        else:
            configure_logging(settings)
        self.settings = settings

        self.boundary = BatchedUpdates()
        self.timers = TimerBridge(
            boundary=self.boundary,
            frame_interval_ms=settings.clock.frame_interval_ms,
            run_all_limit=settings.clock.run_all_limit,
        )
        self.store = PropertyMockStore()
        self.registry = ResourceRegistry()

        self.coordinator = TeardownCoordinator()
        self.coordinator.register(HookTeardownHandler(self.registry))
        self.coordinator.register(SimulatorTeardownHandler(self.registry))
        self.coordinator.register(TimerTeardownHandler(self.timers, self.boundary, settings.teardown))
        self.coordinator.register(StyleTeardownHandler(self.store))

        self.reset_count = 0
        log.debug("Harness context created", log_level=settings.log_level)

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    def create_state_machine(
        self,
        initial_state=AnimationState.IDLE,
        validator: Optional[AllowedTransitions[AnimationState]] = None
    ) -> AnimationStateMachine:
        """State machine stamped with the bridge's clock"""
        machine = AnimationStateMachine(initial_state, validator=validator, now=self.timers.now)
        self.registry.register(
            machine,
            ResourceCategory.STATE_MACHINE,
            f"StateMachine({machine.current_state.value})"
        )
        return machine

    def create_test_state_machine(self, initial_state=AnimationState.IDLE) -> StateMachineKit:
        return StateMachineKit(machine=self.create_state_machine(initial_state))

    def create_simulator(
        self,
        config: Union[KeyframeAnimationConfig, Mapping[str, object], str],
        **fields: Any
    ) -> PhaseSimulator:
        """
        Tracked PhaseSimulator on the bridge's clock.

        Args:
            config: Config, dict of config fields, or a COMMON_ANIMATION_CONFIGS name
            **fields: Extra config fields (override dict entries)

        Raises:
            InvalidConfig: Unknown preset name or invalid fields
        """
        if isinstance(config, str):
            preset = COMMON_ANIMATION_CONFIGS.get(config)
            if preset is None:
                raise InvalidConfig(
                    "create_simulator", f"one of {sorted(COMMON_ANIMATION_CONFIGS)}", config
                )
            config = preset
        if fields:
            base = dict(config) if isinstance(config, Mapping) else asdict(config)
            config = {**base, **fields}

        simulator = PhaseSimulator(
            config,
            clock=self.timers,
            default_steps=self.settings.simulator.default_steps,
            on_finalize=self.registry.release_resource,
        )
        self.registry.register(simulator, ResourceCategory.SIMULATOR, f"PhaseSimulator({simulator.name})")
        return simulator

    def create_timeline(self) -> KeyframeTimeline:
        timeline = KeyframeTimeline(
            self.timers,
            default_steps=self.settings.simulator.default_steps,
            factory=self.create_simulator,
        )
        self.registry.register(timeline, ResourceCategory.TIMELINE, "KeyframeTimeline")
        return timeline

    def render_hook(
        self,
        hook_fn: Callable[..., Any],
        initial_props: Any = None,
        initial_animation_state: Union[MockAnimationState, Mapping[str, object], None] = None,
        simulator: Optional[PhaseSimulator] = None,
        machine: Optional[AnimationStateMachine] = None
    ) -> AnimationHookResult:
        """render_animation_hook() wired to this context's boundary, clock and registry"""
        if machine is None:
            machine = self.create_state_machine(_initial_state_of(initial_animation_state))

        hook = render_animation_hook(
            hook_fn,
            initial_props=initial_props,
            initial_animation_state=initial_animation_state,
            simulator=simulator,
            machine=machine,
            boundary=self.boundary,
            on_unmount=self.registry.release_resource,
        )
        name = getattr(hook_fn, "__qualname__", repr(hook_fn))
        self.registry.register(hook.session, ResourceCategory.HOOK_SESSION, f"HookSession({name})")
        return hook

    def apply_style_presets(self, presets: Optional[Mapping[str, Mapping[str, object]]] = None) -> int:
        """Register the configured common animations (or `presets`) in the style store"""
        return self.store.apply_presets(self.settings.style_presets if presets is None else presets)

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """
        Scenario teardown. Idempotent: a second call finds nothing to release.

        Raises:
            PendingWorkLeak: Callbacks were still scheduled (or, when
                configured, updates ran outside the boundary)
        """
        active = self.registry.active()
        if active:
            log.debug("Releasing scenario resources", summary=self.registry.summary())

        try:
            self.coordinator.teardown_all()
        finally:
            self.registry.clear()
            self.reset_count += 1

    def __enter__(self) -> "HarnessContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self.reset()
            return False

        # The scenario's own failure takes precedence over teardown findings
        try:
            self.reset()
        except HarnessError as teardown_error:
            log.error("Teardown also failed", error=str(teardown_error))
        return False

    def __repr__(self):
        return f"HarnessContext({self.timers.mode.name}, {self.registry.summary()})"


def _initial_state_of(state: Union[MockAnimationState, Mapping[str, object], None]) -> AnimationState:
    if state is None:
        return AnimationState.IDLE
    if isinstance(state, MockAnimationState):
        return state.current_state
    value = state.get("current_state", state.get("currentState", AnimationState.IDLE))
    return EnumHelper.coerce(AnimationState, value)
