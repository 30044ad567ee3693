"""
Tests for HookSession / render_animation_hook.

Covers:
- Initial render and re-render after transitions
- Simulator phases driving the state machine
- Partial state updates and prop changes
- Stale access after unmount
"""

import pytest

from engine.hook_session import HookSession, render_animation_hook
from engine.phase_simulator import PhaseSimulator
from engine.state_machine import AnimationStateMachine
from engine.timer_bridge import TimerBridge
from engine.update_boundary import BatchedUpdates
from models.animation_state import MockAnimationState
from models.enums import AnimationState
from models.errors import StaleResultAccess


def use_label(ctx, props):
    return f"{props['prefix']}:{ctx.state.current_state.value}"


def use_state(ctx, props):
    return ctx.state


@pytest.fixture
def boundary():
    return BatchedUpdates()


@pytest.fixture
def bridge(boundary):
    bridge = TimerBridge(boundary=boundary)
    bridge.use_virtual_clock()
    yield bridge
    bridge.restore()


class TestRendering:
    def test_initial_render(self, boundary):
        hook = render_animation_hook(use_label, initial_props={"prefix": "hero"}, boundary=boundary)

        assert hook.result.current == "hero:idle"
        assert hook.session.render_count == 1
        assert hook.session.is_mounted

    def test_transition_triggers_one_rerender(self, boundary):
        hook = render_animation_hook(use_label, initial_props={"prefix": "hero"}, boundary=boundary)

        record = hook.trigger_transition("running", "click")

        assert record.from_state is AnimationState.IDLE
        assert record.trigger == "click"
        assert hook.result.current == "hero:running"
        assert hook.session.render_count == 2
        assert boundary.unwrapped_updates == 0

        state = hook.get_animation_state()
        assert state.previous_state is AnimationState.IDLE
        assert len(state.transitions) == 1

    def test_transition_from_inside_the_hook_context(self, boundary):
        hook = render_animation_hook(use_state, boundary=boundary)

        hook.session.context.trigger_transition(AnimationState.RUNNING)

        assert hook.result.current.current_state is AnimationState.RUNNING

    def test_rerender_with_new_props(self, boundary):
        hook = render_animation_hook(use_label, initial_props={"prefix": "hero"}, boundary=boundary)

        hook.rerender({"prefix": "logo"})

        assert hook.result.current == "logo:idle"
        assert hook.session.render_count == 2

    def test_rerender_without_props_keeps_previous(self, boundary):
        hook = render_animation_hook(use_label, initial_props={"prefix": "hero"}, boundary=boundary)

        hook.rerender()

        assert hook.result.current == "hero:idle"

    def test_mounting_twice_is_refused(self, boundary):
        hook = render_animation_hook(use_label, initial_props={"prefix": "x"}, boundary=boundary)

        with pytest.raises(StaleResultAccess):
            hook.session.mount()


class TestInitialState:
    def test_mapping_with_camel_case_keys(self, boundary):
        hook = render_animation_hook(
            use_state,
            initial_animation_state={"currentState": "running", "duration": 500},
            boundary=boundary,
        )

        state = hook.result.current
        assert state.current_state is AnimationState.RUNNING
        assert state.duration == 500
        assert hook.machine.current_state is AnimationState.RUNNING

    def test_mock_state_instance(self, boundary):
        hook = render_animation_hook(
            use_state,
            initial_animation_state=MockAnimationState(progress=0.25),
            boundary=boundary,
        )

        assert hook.result.current.progress == 0.25

    def test_supplied_machine_history_is_synced(self, boundary):
        machine = AnimationStateMachine()
        machine.transition("running", "start")

        hook = render_animation_hook(use_state, machine=machine, boundary=boundary)

        state = hook.result.current
        assert state.current_state is AnimationState.RUNNING
        assert state.previous_state is AnimationState.IDLE
        assert len(state.transitions) == 1


class TestUpdateState:
    def test_partial_update_rerenders(self, boundary):
        hook = render_animation_hook(use_state, boundary=boundary)

        hook.session.update_state(progress=0.5)

        assert hook.result.current.progress == 0.5
        assert hook.result.current.current_state is AnimationState.IDLE
        assert hook.session.render_count == 2

    def test_camel_case_update(self, boundary):
        hook = render_animation_hook(use_state, boundary=boundary)

        hook.session.context.update_state(currentState="paused", iterationCount=2)

        assert hook.result.current.current_state is AnimationState.PAUSED
        assert hook.result.current.iteration_count == 2


class TestSimulatorWiring:
    def test_phases_drive_the_machine(self, boundary, bridge):
        sim = PhaseSimulator({"name": "fade", "duration": 1000}, clock=bridge)
        hook = render_animation_hook(use_state, simulator=sim, boundary=boundary)

        sim.start()
        bridge.advance_by(500)

        assert hook.machine.current_state is AnimationState.RUNNING
        assert hook.result.current.current_state is AnimationState.RUNNING
        assert hook.get_animation_state().progress == 0.5

        bridge.advance_by(500)

        triggers = [t.trigger for t in hook.machine.get_transition_history()]
        assert triggers == ["phase:animating", "phase:completed"]
        assert hook.result.current.current_state is AnimationState.COMPLETED
        assert hook.get_animation_state().progress == 1.0
        assert hook.result.current.duration == 1000
        assert boundary.unwrapped_updates == 0

    def test_cancel_inside_batch(self, boundary, bridge):
        sim = PhaseSimulator({"name": "fade", "duration": 1000}, clock=bridge)
        hook = render_animation_hook(use_state, simulator=sim, boundary=boundary)
        sim.start()
        bridge.advance_by(200)

        with boundary.batch():
            sim.cancel()

        assert hook.result.current.current_state is AnimationState.CANCELLED
        assert hook.result.current.previous_state is AnimationState.RUNNING

    def test_direct_simulator_calls_stay_inside_the_boundary(self, boundary, bridge):
        sim = PhaseSimulator({"name": "fade", "duration": 1000}, clock=bridge)
        hook = render_animation_hook(use_state, simulator=sim, boundary=boundary)
        sim.start()
        bridge.advance_by(300)

        sim.pause()
        assert hook.result.current.current_state is AnimationState.PAUSED

        sim.cancel()
        assert hook.result.current.current_state is AnimationState.CANCELLED
        assert hook.result.current.previous_state is AnimationState.PAUSED
        assert boundary.unwrapped_updates == 0


class TestUnmount:
    def test_accessors_raise_after_unmount(self, boundary):
        hook = render_animation_hook(use_label, initial_props={"prefix": "hero"}, boundary=boundary)

        hook.unmount()

        assert not hook.session.is_mounted
        with pytest.raises(StaleResultAccess):
            hook.result.current
        with pytest.raises(StaleResultAccess):
            hook.get_animation_state()
        with pytest.raises(StaleResultAccess):
            hook.trigger_transition("running")
        with pytest.raises(StaleResultAccess):
            hook.rerender()

    def test_unmount_is_idempotent(self, boundary):
        unmounted = []
        session = HookSession(use_state, boundary=boundary, on_unmount=unmounted.append).mount()

        session.unmount()
        session.unmount()

        assert unmounted == [session]

    def test_machine_changes_after_unmount_do_not_render(self, boundary):
        hook = render_animation_hook(use_state, boundary=boundary)
        machine = hook.machine
        hook.unmount()

        with boundary.batch():
            machine.transition("running")

        assert hook.session.render_count == 1

    def test_simulator_listener_removed_on_unmount(self, boundary, bridge):
        sim = PhaseSimulator({"name": "fade", "duration": 300}, clock=bridge)
        hook = render_animation_hook(use_state, simulator=sim, boundary=boundary)
        hook.unmount()

        sim.start()
        bridge.advance_by(300)

        assert hook.machine.get_transition_history() == ()
