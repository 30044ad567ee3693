"""
Style Property Models

Mocked "computed style" values, standing in for a CSS engine that never
runs animations in the test environment. All fields are optional so a
partial update can be merged field-by-field; unset fields resolve to the
CSS defaults below.
"""

from dataclasses import dataclass, fields, replace
from typing import Dict, FrozenSet, Mapping, Optional


@dataclass(frozen=True)
class StyleProperties:
    """
    Property bag for one selector

    None means "not set here" (falls through to a lower-priority match
    or to the CSS default).
    """
    animation_name: Optional[str] = None
    animation_duration: Optional[str] = None
    animation_delay: Optional[str] = None
    animation_iteration_count: Optional[str] = None
    animation_direction: Optional[str] = None
    animation_fill_mode: Optional[str] = None
    animation_play_state: Optional[str] = None
    animation_timing_function: Optional[str] = None
    # Transition properties
    transition_property: Optional[str] = None
    transition_duration: Optional[str] = None
    transition_delay: Optional[str] = None
    transition_timing_function: Optional[str] = None
    # Layout properties
    display: Optional[str] = None
    position: Optional[str] = None
    visibility: Optional[str] = None
    opacity: Optional[str] = None
    transform: Optional[str] = None
    # Filter properties
    backdrop_filter: Optional[str] = None
    filter: Optional[str] = None

    def merged_with(self, other: "StyleProperties") -> "StyleProperties":
        """Field-by-field merge, fields set on `other` win"""
        updates = {
            f.name: getattr(other, f.name)
            for f in fields(other)
            if getattr(other, f.name) is not None
        }
        return replace(self, **updates)

    def set_fields(self) -> Dict[str, str]:
        """Only the fields that carry a value"""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "StyleProperties":
        """
        Build from a dict with snake_case, camelCase or kebab-case keys.

        Raises:
            KeyError: Unknown property name
        """
        values = {}
        for key, value in data.items():
            name = normalize_property_name(key)
            if name not in STYLE_FIELD_NAMES:
                raise KeyError(f"Unknown style property: {key}")
            values[name] = None if value is None else str(value)
        return cls(**values)


STYLE_FIELD_NAMES: FrozenSet[str] = frozenset(f.name for f in fields(StyleProperties))

# Documented fallbacks for unmatched fields
DEFAULT_STYLE_PROPERTIES = StyleProperties(
    animation_name="none",
    animation_duration="0s",
    animation_delay="0s",
    animation_iteration_count="1",
    animation_direction="normal",
    animation_fill_mode="none",
    animation_play_state="running",
    animation_timing_function="ease",
    transition_property="all",
    transition_duration="0s",
    transition_delay="0s",
    transition_timing_function="ease",
    display="block",
    position="static",
    visibility="visible",
    opacity="1",
    transform="none",
    backdrop_filter="none",
    filter="none",
)


def normalize_property_name(name: str) -> str:
    """
    'animation-name' / 'animationName' / 'animation_name' → 'animation_name'
    """
    if "-" in name:
        return name.strip("-").replace("-", "_").lower()
    out = []
    for ch in name:
        if ch.isupper():
            out.append("_")
            out.append(ch.lower())
        else:
            out.append(ch)
    return "".join(out)
