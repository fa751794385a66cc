"""Path steps.

A step is one segment of a recorded path. Records are addressed by attribute
name, sequences by integer position, mappings and sets by key. Keys use a
dedicated step type so a mapping key can never be confused with an attribute
name or a list position.
"""

from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PropertyStep:
    """Read or write the attribute `name` of a record."""

    name: str

    @property
    def label(self) -> str:
        return self.name

    def render(self) -> str:
        if self.name.isidentifier():
            return f".{self.name}"
        return f"[{self.name!r}]"


@dataclass(frozen=True, slots=True)
class IndexStep:
    """Read or write position `position` of a list or tuple."""

    position: int

    @property
    def label(self) -> str:
        return str(self.position)

    def render(self) -> str:
        return f"[{self.position}]"


@dataclass(frozen=True, slots=True)
class KeyStep:
    """Address the entry `key` of a mapping, or the element `key` of a set."""

    key: Hashable

    @property
    def label(self) -> str:
        return f"key({self.key!r})"

    def render(self) -> str:
        return f"[{self.label}]"


type Step = PropertyStep | IndexStep | KeyStep

STEP_TYPES = (PropertyStep, IndexStep, KeyStep)


def key(k: Hashable) -> KeyStep:
    """Build a key-access step.

    Use it as a subscript on a path recorder to address a mapping entry or a
    set element:

        replace_in(state).config[key("theme")]("light")
        delete_in(state).tags[key("draft")]()
    """
    return KeyStep(k)
