"""Property mock store - selector-indexed stand-in for computed-style queries"""

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Union

from models.element import ElementRef
from models.enums import LogCategory
from models.errors import InvalidConfig, SequenceMismatch
from models.style import (
    DEFAULT_STYLE_PROPERTIES,
    STYLE_FIELD_NAMES,
    StyleProperties,
    normalize_property_name,
)
from utils.logger import get_logger

log = get_logger().for_category(LogCategory.STYLE)

StyleInput = Union[StyleProperties, Mapping[str, object], None]
StyleTarget = Union[ElementRef, str]

# Custom properties answered by get_property_value("--...")
CSS_VARIABLE_DEFAULTS: Dict[str, str] = {
    "--animation-duration": "0.3s",
    "--animation-delay": "0s",
    "--animation-timing": "ease-in-out",
    "--transition-duration": "0.3s",
    "--transition-timing": "ease",
}


@dataclass(frozen=True)
class ElementAnimationState:
    """Summary of the animation a query target resolves to"""
    is_animated: bool
    animation_name: str
    duration: str
    play_state: str
    properties: StyleProperties


class PropertyMockStore:
    """
    Selector → StyleProperties registry

    Resolution is simpler than CSS specificity: every
    registered selector the target matches is merged in registration
    order, so the most recently registered (or updated) selector wins
    per field. Fields nobody set fall back to DEFAULT_STYLE_PROPERTIES.

    Example:
        store.set_properties(".fade", animation_name="fadeIn", animation_duration="0.3s")
        store.get_properties(ElementRef.of("div", classes=["fade"])).animation_name   # "fadeIn"
        store.clear_all()
        store.get_properties(".fade").animation_name                                  # "none"
    """

    def __init__(self):
        # Dict order is registration order; updating a selector moves it last
        self._registry: Dict[str, StyleProperties] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def set_properties(self, selector: str, properties: StyleInput = None, **fields) -> StyleProperties:
        """
        Merge a partial property bag into selector's entry (last write wins per field).

        Args:
            selector: CSS-like selector (see ElementRef.matches)
            properties: StyleProperties or dict with snake/camel/kebab keys
            **fields: Additional snake_case fields

        Returns:
            The selector's merged (partial) entry

        Raises:
            InvalidConfig: Empty selector or unknown property name
        """
        if not isinstance(selector, str) or not selector.strip():
            raise InvalidConfig("PropertyMockStore.set_properties", "non-empty selector", repr(selector))

        partial = _coerce(properties, "PropertyMockStore.set_properties")
        if fields:
            partial = partial.merged_with(_coerce(fields, "PropertyMockStore.set_properties"))

        existing = self._registry.pop(selector, StyleProperties())
        merged = existing.merged_with(partial)
        self._registry[selector] = merged

        log.debug("Style properties set", selector=selector, fields=", ".join(sorted(partial.set_fields())))
        return merged

    def mock_keyframe_animations(self, animations: Iterable[Mapping[str, object]]) -> None:
        """
        Register `keyframe-<name>` entries, matched against element class names.

        Each mapping needs `name`; duration, delay, iteration_count, direction,
        fill_mode and timing_function default to 1s, 0s, 1, normal, none, ease.
        """
        for animation in animations:
            values = {normalize_property_name(k): v for k, v in animation.items()}
            name = values.get("name")
            if not name:
                raise InvalidConfig("PropertyMockStore.mock_keyframe_animations", "animation name", values)

            self.set_properties(
                f"keyframe-{name}",
                animation_name=str(name),
                animation_duration=str(values.get("duration") or "1s"),
                animation_delay=str(values.get("delay") or "0s"),
                animation_iteration_count=str(values.get("iteration_count") or "1"),
                animation_direction=str(values.get("direction") or "normal"),
                animation_fill_mode=str(values.get("fill_mode") or "none"),
                animation_timing_function=str(values.get("timing_function") or "ease"),
                animation_play_state="running",
            )

    def apply_presets(self, presets: Mapping[str, Mapping[str, object]]) -> int:
        """Register a selector → property-bag table; returns the selector count"""
        for selector, properties in presets.items():
            self.set_properties(selector, properties)
        log.debug("Style presets applied", selectors=len(presets))
        return len(presets)

    def clear_all(self) -> None:
        """Drop every registration; afterwards every query answers defaults"""
        count = len(self._registry)
        self._registry.clear()
        log.debug("Style registry cleared", selectors=count)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_properties(self, target: StyleTarget) -> StyleProperties:
        """
        Resolve every field for an element (or exact selector string).

        A miss is not an error: unmatched fields come back as CSS defaults.
        """
        resolved = StyleProperties()
        for selector, properties in self._registry.items():
            if _matches(target, selector):
                resolved = resolved.merged_with(properties)
        return DEFAULT_STYLE_PROPERTIES.merged_with(resolved)

    def get_property_value(self, target: StyleTarget, property_name: str) -> str:
        """
        Single kebab-case lookup ('animation-name'), '' for unknown names.

        Custom properties ('--animation-duration') resolve against CSS_VARIABLE_DEFAULTS.
        """
        if property_name.startswith("--"):
            return CSS_VARIABLE_DEFAULTS.get(property_name, "")

        name = normalize_property_name(property_name)
        if name not in STYLE_FIELD_NAMES:
            return ""
        return getattr(self.get_properties(target), name) or ""

    def has_animation_property(self, target: StyleTarget, property_name: str, expected: str) -> bool:
        return self.get_property_value(target, property_name) == expected

    def get_animation_state(self, target: StyleTarget) -> ElementAnimationState:
        properties = self.get_properties(target)
        return ElementAnimationState(
            is_animated=properties.animation_name != "none",
            animation_name=properties.animation_name,
            duration=properties.animation_duration,
            play_state=properties.animation_play_state,
            properties=properties,
        )

    def expect_animation_properties(self, target: StyleTarget, expected: Mapping[str, str]) -> None:
        """
        Raises:
            SequenceMismatch: Any listed property resolves to a different value
            InvalidConfig: Unknown property name in `expected`
        """
        wanted = _coerce(expected, "PropertyMockStore.expect_animation_properties").set_fields()
        actual = self.get_properties(target)

        mismatches = {
            name: getattr(actual, name)
            for name, value in wanted.items()
            if getattr(actual, name) != value
        }
        if mismatches:
            raise SequenceMismatch(
                "expect_animation_properties",
                ", ".join(f"{name}={wanted[name]!r}" for name in mismatches),
                ", ".join(f"{name}={value!r}" for name, value in mismatches.items()),
                detail=f"target {_label(target)}",
            )

    def registry_snapshot(self) -> Dict[str, StyleProperties]:
        """Copy of the registry in registration order (entries are immutable)"""
        return dict(self._registry)

    def get_entry(self, selector: str) -> Optional[StyleProperties]:
        """Partial entry registered for selector, None if absent"""
        return self._registry.get(selector)

    @property
    def selector_count(self) -> int:
        return len(self._registry)

    def __repr__(self):
        return f"PropertyMockStore(selectors={len(self._registry)})"


def _coerce(properties: StyleInput, operation: str) -> StyleProperties:
    if properties is None:
        return StyleProperties()
    if isinstance(properties, StyleProperties):
        return properties
    try:
        return StyleProperties.from_mapping(properties)
    except KeyError as e:
        raise InvalidConfig(operation, "known style property", e.args[0] if e.args else properties) from e


def _matches(target: StyleTarget, selector: str) -> bool:
    if isinstance(target, ElementRef):
        return target.matches(selector)
    return target == selector


def _label(target: StyleTarget) -> str:
    if isinstance(target, ElementRef):
        classes = "".join(f".{name}" for name in sorted(target.classes))
        return f"<{target.tag}{classes}>"
    return target
