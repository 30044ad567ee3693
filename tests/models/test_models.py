"""
Tests for the value models: errors, element matching, style bags, configs.
"""

import pytest

from models.animation_state import create_mock_animation_state
from models.element import ElementRef
from models.enums import AnimationPhase, AnimationState
from models.errors import HarnessError, InvalidConfig, InvalidState, SequenceMismatch
from models.keyframe import COMMON_ANIMATION_CONFIGS, KeyframeAnimationConfig
from models.style import StyleProperties, normalize_property_name
from models.transition import get_easing


class TestErrors:
    def test_message_names_operation_expected_and_actual(self):
        error = InvalidState("PhaseSimulator.start", "idle simulator", AnimationPhase.ANIMATING)

        assert str(error) == "PhaseSimulator.start: expected idle simulator, got animating"
        assert error.operation == "PhaseSimulator.start"

    def test_detail_is_appended(self):
        error = InvalidConfig("op", "x > 0", -1, detail="negative")

        assert str(error) == "op: expected x > 0, got -1 (negative)"

    def test_collections_are_described_by_value(self):
        error = SequenceMismatch("check", [AnimationState.IDLE, AnimationState.RUNNING], [])

        assert str(error) == "check: expected {idle, running}, got {}"

    def test_hierarchy(self):
        assert issubclass(InvalidConfig, ValueError)
        assert issubclass(SequenceMismatch, AssertionError)
        assert issubclass(InvalidState, HarnessError)


class TestElementRef:
    @pytest.mark.parametrize("selector,expected", [
        ("div", True),
        (".card", True),
        (".card.active", True),
        ("div.card", True),
        ("span.card", False),
        ("#main", True),
        ("#other", False),
        (".missing", False),
        ("div .card", False),
        (".card, .active", False),
        ("keyframe-active", True),
        ("", False),
    ])
    def test_matches(self, selector, expected):
        element = ElementRef.of("div", classes=["card", "active"], id="main")

        assert element.matches(selector) is expected

    def test_state_selector(self):
        element = ElementRef.of("a", states=["focus"])

        assert element.matches("a:focus")
        assert not element.matches("a:hover")

    def test_class_string_is_split(self):
        assert ElementRef.of(classes="a b").classes == frozenset({"a", "b"})


class TestStyleProperties:
    @pytest.mark.parametrize("name", ["animation-name", "animationName", "animation_name"])
    def test_normalize_property_name(self, name):
        assert normalize_property_name(name) == "animation_name"

    def test_merge_keeps_unset_fields(self):
        base = StyleProperties(animation_name="a", opacity="0")
        merged = base.merged_with(StyleProperties(opacity="1"))

        assert merged.animation_name == "a"
        assert merged.opacity == "1"

    def test_from_mapping_rejects_unknown_keys(self):
        with pytest.raises(KeyError):
            StyleProperties.from_mapping({"colour": "red"})

    def test_set_fields(self):
        assert StyleProperties(opacity="0.5").set_fields() == {"opacity": "0.5"}


class TestConfigs:
    def test_validate_returns_self(self):
        config = KeyframeAnimationConfig(name="x", duration=100)

        assert config.validate() is config

    def test_total_duration(self):
        assert KeyframeAnimationConfig(name="x", duration=100, iteration_count=3).total_duration == 300

    def test_common_configs_are_finite(self):
        for name, config in COMMON_ANIMATION_CONFIGS.items():
            assert config.name == name
            config.validate()

    def test_unknown_easing(self):
        assert get_easing("bounce") is None
        assert get_easing("linear")(0.5) == 0.5

    def test_mock_animation_state_overrides(self):
        state = create_mock_animation_state(current_state=AnimationState.PAUSED, progress=0.4)

        assert state.current_state is AnimationState.PAUSED
        assert state.progress == 0.4
        assert state.transitions == ()
