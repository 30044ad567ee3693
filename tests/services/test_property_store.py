"""
Tests for PropertyMockStore.

Covers:
- Defaults after clear_all()
- Field-by-field merge, most recent registration wins
- Element matching (classes, tags, ids, states, test ids)
- keyframe-<name> mocks, presets, CSS variables
- expect_animation_properties() mismatch reporting
"""

import pytest

from models.element import ElementRef
from models.errors import InvalidConfig, SequenceMismatch
from models.style import DEFAULT_STYLE_PROPERTIES, StyleProperties
from services.property_store import PropertyMockStore


@pytest.fixture
def store():
    return PropertyMockStore()


class TestDefaults:
    def test_unregistered_target_gets_css_defaults(self, store):
        assert store.get_properties(".nothing") == DEFAULT_STYLE_PROPERTIES
        assert store.get_property_value(".nothing", "animation-name") == "none"
        assert store.get_property_value(".nothing", "opacity") == "1"

    def test_clear_all_restores_defaults(self, store):
        store.set_properties(".fade", animation_name="fadeIn")

        store.clear_all()

        assert store.selector_count == 0
        assert store.get_properties(".fade").animation_name == "none"


class TestSetProperties:
    def test_partial_updates_merge_per_field(self, store):
        store.set_properties(".fade", animation_name="fadeIn", animation_duration="0.3s")
        store.set_properties(".fade", {"animationDuration": "0.5s"})

        entry = store.get_entry(".fade")
        assert entry.animation_name == "fadeIn"
        assert entry.animation_duration == "0.5s"

    def test_kebab_case_keys(self, store):
        store.set_properties(".fade", {"animation-play-state": "paused"})

        assert store.get_property_value(".fade", "animation-play-state") == "paused"

    def test_style_properties_instance(self, store):
        store.set_properties(".fade", StyleProperties(opacity="0.5"))

        assert store.get_property_value(".fade", "opacity") == "0.5"

    def test_empty_selector_rejected(self, store):
        with pytest.raises(InvalidConfig):
            store.set_properties("  ", animation_name="x")

    def test_unknown_property_rejected(self, store):
        with pytest.raises(InvalidConfig):
            store.set_properties(".fade", {"colour": "red"})

    def test_updating_a_selector_makes_it_most_recent(self, store):
        store.set_properties(".a", animation_name="first")
        store.set_properties(".b", animation_name="second")
        store.set_properties(".a", animation_duration="1s")

        assert list(store.registry_snapshot()) == [".b", ".a"]


class TestElementResolution:
    def test_most_recent_match_wins_per_field(self, store):
        element = ElementRef.of("div", classes=["card", "fade"])
        store.set_properties(".card", animation_name="cardIn", animation_duration="1s")
        store.set_properties(".fade", animation_name="fadeIn")

        properties = store.get_properties(element)

        assert properties.animation_name == "fadeIn"
        assert properties.animation_duration == "1s"
        assert properties.animation_delay == "0s"

    def test_compound_and_tag_selectors(self, store):
        button = ElementRef.of("BUTTON", classes="btn primary", id="go")
        store.set_properties("button.btn", transform="scale(1)")
        store.set_properties("#go", opacity="0.9")
        store.set_properties(".btn.secondary", display="none")

        properties = store.get_properties(button)

        assert properties.transform == "scale(1)"
        assert properties.opacity == "0.9"
        assert properties.display == "block"

    def test_pseudo_state_selector(self, store):
        store.set_properties(".btn:hover", animation_name="buttonHover")
        button = ElementRef.of("button", classes=["btn"])

        assert store.get_property_value(button, "animation-name") == "none"
        assert store.get_property_value(button.with_state("hover"), "animation-name") == "buttonHover"

    def test_test_id_selector(self, store):
        store.set_properties('[data-testid="hero"]', animation_name="heroIn")

        assert store.get_property_value(ElementRef.of(test_id="hero"), "animation-name") == "heroIn"
        assert store.get_property_value(ElementRef.of(test_id="other"), "animation-name") == "none"

    def test_string_target_is_exact_selector(self, store):
        store.set_properties(".fade", animation_name="fadeIn")

        assert store.get_property_value(".fade", "animation-name") == "fadeIn"
        assert store.get_property_value("div.fade", "animation-name") == "none"

    def test_removing_a_class_stops_matching(self, store):
        element = ElementRef.of("div", classes=["fade"])
        store.set_properties(".fade", animation_name="fadeIn")

        assert store.get_animation_state(element).is_animated
        assert not store.get_animation_state(element.without_classes("fade")).is_animated


class TestKeyframeMocks:
    def test_keyframe_entries_match_class_names(self, store):
        store.mock_keyframe_animations([
            {"name": "fadeIn", "duration": "0.3s"},
            {"name": "slideUp", "duration": "0.4s", "timingFunction": "ease-out", "iterationCount": 2},
        ])

        slide = ElementRef.of("div", classes=["slideUp"])
        state = store.get_animation_state(slide)

        assert state.is_animated
        assert state.animation_name == "slideUp"
        assert state.duration == "0.4s"
        assert state.play_state == "running"
        assert store.get_property_value(slide, "animation-timing-function") == "ease-out"
        assert store.get_property_value(slide, "animation-iteration-count") == "2"
        assert store.get_entry("keyframe-fadeIn").animation_fill_mode == "none"

    def test_keyframe_defaults(self, store):
        store.mock_keyframe_animations([{"name": "pulse"}])

        entry = store.get_entry("keyframe-pulse")
        assert entry.animation_duration == "1s"
        assert entry.animation_timing_function == "ease"

    def test_missing_name_rejected(self, store):
        with pytest.raises(InvalidConfig):
            store.mock_keyframe_animations([{"duration": "1s"}])


class TestPropertyValues:
    def test_css_variables(self, store):
        assert store.get_property_value(".any", "--animation-duration") == "0.3s"
        assert store.get_property_value(".any", "--transition-timing") == "ease"
        assert store.get_property_value(".any", "--unknown") == ""

    def test_unknown_property_is_empty_string(self, store):
        assert store.get_property_value(".any", "color") == ""

    def test_has_animation_property(self, store):
        store.set_properties(".fade", animation_name="fadeIn")

        assert store.has_animation_property(".fade", "animation-name", "fadeIn")
        assert not store.has_animation_property(".fade", "animation-name", "slideUp")


class TestExpectations:
    def test_matching_expectation_passes(self, store):
        store.set_properties(".fade", animation_name="fadeIn", animation_duration="0.3s")

        store.expect_animation_properties(".fade", {"animation-name": "fadeIn", "animationDuration": "0.3s"})

    def test_mismatch_reports_expected_and_actual(self, store):
        store.set_properties(".fade", animation_name="fadeIn")

        with pytest.raises(SequenceMismatch) as exc:
            store.expect_animation_properties(".fade", {"animation_name": "slideUp"})

        message = str(exc.value)
        assert "animation_name='slideUp'" in message
        assert "animation_name='fadeIn'" in message
        assert "target .fade" in message

    def test_mismatch_is_an_assertion_error(self, store):
        with pytest.raises(AssertionError):
            store.expect_animation_properties(ElementRef.of("div"), {"opacity": "0"})

    def test_unknown_expected_property(self, store):
        with pytest.raises(InvalidConfig):
            store.expect_animation_properties(".fade", {"colour": "red"})


class TestPresets:
    def test_apply_presets(self, store):
        count = store.apply_presets({
            ".logo-stagger": {"animation_name": "fadeInScale", "animation_duration": "0.6s"},
            ".btn:hover": {"animation_name": "buttonHover"},
        })

        assert count == 2
        logo = ElementRef.of("img", classes=["logo-stagger"])
        assert store.get_property_value(logo, "animation-name") == "fadeInScale"
