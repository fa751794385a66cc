"""Deep-clone primitive for values stored by `replace_in`.

A replacement value is copied before it enters the tree so later writes by the
caller cannot reach into the new state. The copy rebuilds containers and plain
records and duplicates mutable value types (`bytearray`, dates and the like go
through `copy.deepcopy`). Functions, classes and opaque class instances are
reused by reference: they are not data the engine owns.
"""

from __future__ import annotations

import copy
import types
from collections.abc import Mapping
from typing import Any

from forkpath.engine.shapes import (
    Shape,
    classify,
    instance_state,
    is_named_tuple,
    is_plain_record,
    rebuild_record,
)

# Immutable or uncopyable scalars, reused by reference.
_SHARED_SCALARS = (str, int, float, complex, bytes, range, memoryview, types.ModuleType)


def deep_clone[V](value: V) -> V:
    """Create a value-identical, reference-distinct copy of `value`.

    Args:
        value: Any value that may be stored in a tree

    Returns:
        A copy sharing no mutable containers with `value`. Callables and opaque
        instances are returned as they are.
    """
    return _clone(value, {})


def _clone(value: Any, memo: dict[int, Any]) -> Any:
    done = memo.get(id(value))
    if done is not None:
        return done
    shape = classify(value)
    if shape is Shape.SCALAR:
        if callable(value) or value is None or isinstance(value, _SHARED_SCALARS):
            return value
        return copy.deepcopy(value)
    if shape is Shape.RECORD and not is_plain_record(value):
        return value
    result = _clone_container(value, shape, memo)
    memo[id(value)] = result
    return result


def _clone_container(value: Any, shape: Shape, memo: dict[int, Any]) -> Any:
    base = getattr(type(value), "__lock_base__", type(value))
    match shape:
        case Shape.MAPPING:
            items = {_clone(k, memo): _clone(v, memo) for k, v in value.items()}
            if base is dict or not isinstance(value, Mapping):
                return items
            try:
                clone = copy.copy(value)
                clone.clear()
                clone.update(items)
                return clone
            except (AttributeError, TypeError):  # read-only mapping types
                return items
        case Shape.SEQUENCE:
            items = [_clone(item, memo) for item in value]
            return base(items)
        case Shape.SET:
            return base(_clone(item, memo) for item in value)
        case Shape.RECORD if is_named_tuple(value):
            return base(*(_clone(item, memo) for item in value))
        case _:
            state = {name: _clone(v, memo) for name, v in instance_state(value).items()}
            return rebuild_record(base, state)
