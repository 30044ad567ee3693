"""Services layer"""

from .property_store import PropertyMockStore, ElementAnimationState

__all__ = [
    "PropertyMockStore",
    "ElementAnimationState",
]
