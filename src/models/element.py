"""
Element reference used for style queries.

Stands in for the host framework's element/query capability: just enough
of an element (tag, classes, id, test id, interaction states) to resolve
which registered selectors apply.
"""

import re
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional

_TEST_ID_RE = re.compile(r'^\[data-testid=["\']?([^"\'\]]+)["\']?\]$')
_SIMPLE_RE = re.compile(r"([.#:]?)([A-Za-z0-9_-]+)")


@dataclass(frozen=True)
class ElementRef:
    tag: str = "div"
    classes: FrozenSet[str] = field(default_factory=frozenset)
    id: Optional[str] = None
    test_id: Optional[str] = None
    states: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def of(
        cls,
        tag: str = "div",
        classes: Iterable[str] = (),
        id: Optional[str] = None,
        test_id: Optional[str] = None,
        states: Iterable[str] = ()
    ) -> "ElementRef":
        if isinstance(classes, str):
            classes = classes.split()
        return cls(
            tag=tag.lower(),
            classes=frozenset(classes),
            id=id,
            test_id=test_id,
            states=frozenset(states),
        )

    def with_classes(self, *names: str) -> "ElementRef":
        return ElementRef(self.tag, self.classes | set(names), self.id, self.test_id, self.states)

    def without_classes(self, *names: str) -> "ElementRef":
        return ElementRef(self.tag, self.classes - set(names), self.id, self.test_id, self.states)

    def with_state(self, state: str) -> "ElementRef":
        return ElementRef(self.tag, self.classes, self.id, self.test_id, self.states | {state})

    def matches(self, selector: str) -> bool:
        """
        Match a single compound selector.

        Supported: tag, .class, .a.b, #id, tag.class, :pseudo (against states),
        [data-testid="x"], keyframe-<name> (against class names).
        Combinators and selector lists are not supported and never match.
        """
        selector = selector.strip()
        if not selector or " " in selector or "," in selector or ">" in selector:
            return False

        m = _TEST_ID_RE.match(selector)
        if m:
            return self.test_id == m.group(1)

        if selector.startswith("keyframe-"):
            return selector[len("keyframe-"):] in self.classes

        consumed = 0
        for part in _SIMPLE_RE.finditer(selector):
            if part.start() != consumed:
                return False
            consumed = part.end()
            prefix, name = part.group(1), part.group(2)
            if prefix == ".":
                if name not in self.classes:
                    return False
            elif prefix == "#":
                if self.id != name:
                    return False
            elif prefix == ":":
                if name not in self.states:
                    return False
            elif name.lower() != self.tag:
                return False
        return consumed == len(selector)
