"""Static type lookup for path slots.

The walker asks two questions about every slot it steps into: which type
annotation describes it, and whether that annotation admits None. Annotations
come from `typing.get_type_hints` on record classes and from the type arguments
of enclosing container annotations (`dict[str, Profile | None]`,
`list[Item]`, `tuple[int, str]`).
"""

from __future__ import annotations

import functools
import re
import types
import typing
from collections.abc import Mapping, Sequence
from collections.abc import Set as AbstractSet
from typing import Any

from forkpath.path.Step import IndexStep, KeyStep, PropertyStep, Step


class _Unknown:
    __slots__ = ()

    def __repr__(self) -> str:
        return "UNKNOWN"


UNKNOWN: Any = _Unknown()

# Matches `None`, `Optional[...]` and `X | None` inside unresolvable string annotations.
_OPTIONAL_TEXT = re.compile(r"\bNone\b|\bOptional\[")


@functools.lru_cache(maxsize=512)
def record_hints(cls: type) -> dict[str, Any]:
    """Field annotations of `cls`, resolved where possible.

    Forward references that cannot be resolved fall back to the raw annotation
    strings collected over the MRO.
    """
    base = getattr(cls, "__lock_base__", cls)
    try:
        return typing.get_type_hints(base)
    except Exception:  # NameError, TypeError from unresolvable forward refs
        raw: dict[str, Any] = {}
        for klass in reversed(base.__mro__):
            raw.update(getattr(klass, "__annotations__", {}))
        return raw


def field_hint(record: Any, name: str) -> Any:
    if isinstance(record, types.SimpleNamespace):
        return UNKNOWN
    try:
        hints = record_hints(type(record))
    except TypeError:  # unhashable or exotic class objects
        return UNKNOWN
    return hints.get(name, UNKNOWN)


def allows_none(hint: Any) -> bool | None:
    """True if `hint` admits None, False if it does not, None if unknown."""
    if hint is UNKNOWN:
        return None
    if isinstance(hint, str):
        return bool(_OPTIONAL_TEXT.search(hint))
    if isinstance(hint, typing.ForwardRef):
        return bool(_OPTIONAL_TEXT.search(hint.__forward_arg__))
    if hint is None or hint is types.NoneType or hint is Any:
        return True
    origin = typing.get_origin(hint)
    if origin is typing.Annotated:
        return allows_none(typing.get_args(hint)[0])
    if origin is typing.Union or origin is types.UnionType:
        return any(allows_none(arg) for arg in typing.get_args(hint))
    if isinstance(hint, typing.TypeVar):
        return None
    return False


def strip_optional(hint: Any) -> Any:
    """Drop None from a union so its container arguments can be inspected."""
    origin = typing.get_origin(hint)
    if origin is typing.Annotated:
        return strip_optional(typing.get_args(hint)[0])
    if origin is typing.Union or origin is types.UnionType:
        rest = [arg for arg in typing.get_args(hint) if arg is not types.NoneType]
        if len(rest) == 1:
            return rest[0]
    return hint


def child_hint(parent: Any, parent_hint: Any, step: Step) -> Any:
    """The annotation of the slot `step` addresses inside `parent`.

    Record fields are looked up on the record's own class. Container slots
    are read from the type arguments of `parent_hint`, the annotation of the
    slot holding the container.
    """
    if isinstance(step, PropertyStep):
        return field_hint(parent, step.name)
    if parent_hint is UNKNOWN or isinstance(parent_hint, (str, typing.ForwardRef)):
        return UNKNOWN
    hint = strip_optional(parent_hint)
    origin = typing.get_origin(hint)
    args = typing.get_args(hint)
    if origin is None or not args:
        return UNKNOWN
    if isinstance(step, IndexStep):
        if origin is tuple:
            if len(args) == 2 and args[1] is Ellipsis:
                return args[0]
            if -len(args) <= step.position < len(args):
                return args[step.position]
            return UNKNOWN
        if isinstance(origin, type) and issubclass(origin, Sequence):
            return args[0]
        return UNKNOWN
    if isinstance(step, KeyStep):
        if isinstance(origin, type) and issubclass(origin, Mapping) and len(args) == 2:
            return args[1]
        if isinstance(origin, type) and issubclass(origin, AbstractSet):
            return args[0]
    return UNKNOWN
