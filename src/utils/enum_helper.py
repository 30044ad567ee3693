"""Enum conversion utilities"""

from enum import Enum
from typing import Any, Optional, Type, TypeVar

E = TypeVar("E", bound=Enum)


class EnumHelper:
    """
    Parse user-facing strings ("running", "before-start", "WARN") back into
    enum members. Used wherever a config file or a test passes a state or
    phase as plain text.
    """

    @staticmethod
    def from_string(enum_class: Type[E], name: str, case_insensitive: bool = True,
                    default: Optional[E] = None) -> Optional[E]:
        """
        Look up a member by its name.

        Args:
            enum_class: Target Enum class
            name: Member name ("WARN", "warn" when case_insensitive)
            case_insensitive: Compare upper-cased names
            default: Returned instead of raising when nothing matches

        Raises:
            ValueError: No member matches and no default was given
        """
        if not issubclass(enum_class, Enum):
            raise TypeError(f"{enum_class} is not an Enum class")

        wanted = name.upper() if case_insensitive else name
        for member in enum_class:
            candidate = member.name.upper() if case_insensitive else member.name
            if candidate == wanted:
                return member

        if default is not None:
            return default
        raise ValueError(f"Invalid {enum_class.__name__} name: {name}")

    @staticmethod
    def coerce(enum_class: Type[E], value: Any) -> E:
        """
        Convert a member, a value ("before-start") or a name ("BEFORE_START")
        to an enum instance.

        Raises:
            ValueError: No member matches
            TypeError: Value is neither str nor a member of enum_class
        """
        if isinstance(value, enum_class):
            return value
        if isinstance(value, str):
            for member in enum_class:
                if member.value == value:
                    return member
            return EnumHelper.from_string(enum_class, value.replace("-", "_"))
        raise TypeError(f"Expected str or {enum_class.__name__}, got {type(value).__name__}")
