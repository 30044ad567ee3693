"""
Tests for StateMachine and its expected-sequence helpers.

Covers:
- History invariant (length and from/to chaining)
- Validator rejection
- create_test_state_machine() round trip
- Predicates
"""

import random

import pytest

from engine.state_machine import (
    DEFAULT_ANIMATION_TRANSITIONS,
    AllowedTransitions,
    AnimationStateMachine,
    StateMachine,
    StateTransitionValidator,
    create_test_state_machine,
    is_animation_active,
    is_animation_complete,
    is_animation_running,
    validate_state_transition,
)
from models.enums import AnimationState
from models.errors import InvalidTransition, SequenceMismatch


class TestTransitionHistory:
    """History is append-only and chained."""

    def test_history_length_and_chaining(self):
        rng = random.Random(1234)
        states = list(AnimationState)
        machine = AnimationStateMachine(AnimationState.IDLE)

        calls = 200
        for _ in range(calls):
            machine.transition(rng.choice(states))

        history = machine.get_transition_history()
        assert len(history) == calls
        assert history[0].from_state == AnimationState.IDLE
        for i in range(1, calls):
            assert history[i].from_state == history[i - 1].to_state
        assert machine.current_state == history[-1].to_state

    def test_self_transition_is_recorded(self):
        machine = AnimationStateMachine()
        machine.transition("idle")

        history = machine.get_transition_history()
        assert len(history) == 1
        assert history[0].from_state == history[0].to_state == AnimationState.IDLE

    def test_history_snapshot_does_not_change(self):
        machine = AnimationStateMachine()
        machine.transition("running")
        snapshot = machine.get_transition_history()

        machine.transition("completed")

        assert len(snapshot) == 1
        assert len(machine.get_transition_history()) == 2

    def test_timestamps_come_from_injected_clock(self):
        now = [100.0]
        machine = AnimationStateMachine(now=lambda: now[0])

        machine.transition("running", "start")
        now[0] = 250.0
        machine.transition("completed")

        history = machine.get_transition_history()
        assert [t.timestamp for t in history] == [100.0, 250.0]
        assert history[0].trigger == "start"
        assert history[1].trigger is None

    def test_reset_clears_history(self):
        machine = AnimationStateMachine("paused")
        machine.transition("running")
        machine.reset()

        assert machine.current_state == AnimationState.PAUSED
        assert machine.previous_state is None
        assert machine.get_transition_history() == ()

    def test_reset_with_new_initial_state(self):
        machine = AnimationStateMachine()
        machine.reset("completed")

        assert machine.current_state == AnimationState.COMPLETED
        assert machine.initial_state == AnimationState.COMPLETED

    def test_generic_machine_with_plain_strings(self):
        machine = StateMachine("closed")
        machine.transition("open")

        assert machine.current_state == "open"
        assert machine.previous_state == "closed"


class TestValidator:
    """Attached validators reject pairs outside their table."""

    def test_rejected_transition_raises_and_keeps_state(self):
        machine = AnimationStateMachine(validator=DEFAULT_ANIMATION_TRANSITIONS)

        with pytest.raises(InvalidTransition) as exc:
            machine.transition("completed")

        assert "StateMachine.transition" in str(exc.value)
        assert machine.current_state == AnimationState.IDLE
        assert machine.get_transition_history() == ()

    def test_allowed_transition_passes(self):
        machine = AnimationStateMachine(validator=DEFAULT_ANIMATION_TRANSITIONS)
        machine.transition("running")
        machine.transition("paused")
        machine.transition("running")
        machine.transition("completed")

        assert machine.current_state == AnimationState.COMPLETED

    def test_validator_can_be_detached(self):
        machine = AnimationStateMachine(validator=DEFAULT_ANIMATION_TRANSITIONS)
        machine.set_validator(None)

        machine.transition("completed")
        assert machine.current_state == AnimationState.COMPLETED

    def test_allowed_transitions_from_mapping(self):
        table = AllowedTransitions.from_mapping({"a": ["b", "c"], "b": ["a"]})

        assert table.allows("a", "c")
        assert not table.allows("c", "a")
        assert sorted(table.allowed_from("a")) == ["b", "c"]
        assert len(table.pairs) == 3


class TestListeners:
    def test_listener_receives_new_state_and_can_unsubscribe(self):
        machine = AnimationStateMachine()
        seen = []
        unsubscribe = machine.on_state_change(seen.append)

        machine.transition("running")
        unsubscribe()
        machine.transition("completed")

        assert seen == [AnimationState.RUNNING]

    def test_unsubscribe_twice_is_harmless(self):
        machine = AnimationStateMachine()
        unsubscribe = machine.on_state_change(lambda state: None)
        unsubscribe()
        unsubscribe()


class TestStateMachineKit:
    """create_test_state_machine() bundles machine + expectations."""

    def test_four_transition_scenario_validates(self):
        kit = create_test_state_machine("idle")
        kit.expect_transition("idle", "running")
        kit.expect_transition("running", "paused")
        kit.expect_transition("paused", "running")
        kit.expect_transition("running", "completed")

        for state in ("running", "paused", "running", "completed"):
            kit.machine.transition(state)

        kit.validate_transitions()

        history = kit.machine.get_transition_history()
        assert len(history) == 4
        assert kit.machine.current_state == AnimationState.COMPLETED

    def test_mismatch_raises_sequence_mismatch(self):
        kit = create_test_state_machine()
        kit.expect_transition("idle", "running")
        kit.expect_transition("running", "completed")

        kit.machine.transition("running")
        kit.machine.transition("cancelled")

        with pytest.raises(SequenceMismatch) as exc:
            kit.validate_transitions()

        assert "Transition 1" in str(exc.value)

    def test_mismatch_is_an_assertion_error(self):
        kit = create_test_state_machine()
        kit.expect_transition("idle", "running")

        with pytest.raises(AssertionError):
            kit.validate_transitions()

    def test_reset_clears_machine_and_expectations(self):
        kit = create_test_state_machine()
        kit.expect_transition("idle", "running")
        kit.machine.transition("running")

        kit.reset()

        kit.validate_transitions()
        assert kit.machine.current_state == AnimationState.IDLE

    def test_validator_reports_count_mismatch(self):
        validator = StateTransitionValidator().expect("idle", "running")
        result = validator.validate([])

        assert not result.is_valid
        assert result.errors == ("Expected 1 transitions, got 0",)


class TestPredicates:
    def test_state_predicates(self):
        assert is_animation_running(AnimationState.RUNNING)
        assert not is_animation_running(AnimationState.PAUSED)
        assert is_animation_complete(AnimationState.COMPLETED)
        assert is_animation_active(AnimationState.PAUSED)
        assert not is_animation_active(AnimationState.IDLE)

    def test_validate_state_transition_searches_history(self):
        machine = AnimationStateMachine()
        machine.transition("running")
        machine.transition("completed")
        history = machine.get_transition_history()

        assert validate_state_transition("running", "completed", history)
        assert validate_state_transition(AnimationState.IDLE, AnimationState.RUNNING, history)
        assert not validate_state_transition("idle", "completed", history)
