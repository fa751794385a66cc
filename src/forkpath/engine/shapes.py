"""Collection classifier.

Every value the engine meets is one of five shapes:

- RECORD: dataclass instances, NamedTuples, SimpleNamespace and other objects
  carrying attributes. Addressed by attribute name.
- SEQUENCE: lists and tuples. Addressed by integer position.
- MAPPING: any collections.abc.Mapping. Addressed by key().
- SET: sets and frozensets. Elements addressed by key() for deletion only.
- SCALAR: everything that cannot be stepped into (None, numbers, strings,
  bytes, dates, enums, compiled patterns, functions, classes).

The write helpers below only ever receive nodes the current frame owns (fresh
shallow copies) or immutable containers, which they rebuild instead of
modifying. They return the node to link into the parent.
"""

from __future__ import annotations

import copy
import dataclasses
import datetime
import decimal
import enum
import fractions
import functools
import re
import types
import uuid
from collections.abc import Iterable, Mapping, MutableMapping
from collections.abc import Set as AbstractSet
from typing import Any

from forkpath.errors import CollectionAccessError, UnsupportedOperationError
from forkpath.path.Step import IndexStep, KeyStep, PropertyStep, Step


class Shape(enum.Enum):
    SCALAR = "scalar"
    RECORD = "record"
    SEQUENCE = "sequence"
    MAPPING = "mapping"
    SET = "set"


class _Missing:
    """Marker for a slot that does not exist (missing key, attribute or index)."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()

_SCALAR_TYPES: tuple[type, ...] = (
    str,
    bytes,
    bytearray,
    memoryview,
    int,
    float,
    complex,
    enum.Enum,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    datetime.tzinfo,
    decimal.Decimal,
    fractions.Fraction,
    uuid.UUID,
    re.Pattern,
    range,
    type,
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodType,
    types.ModuleType,
    functools.partial,
)


def classify(value: Any) -> Shape:
    if value is None or value is MISSING or isinstance(value, _SCALAR_TYPES):
        return Shape.SCALAR
    if isinstance(value, Mapping):
        return Shape.MAPPING
    if isinstance(value, AbstractSet):
        return Shape.SET
    if isinstance(value, tuple):
        return Shape.RECORD if is_named_tuple(value) else Shape.SEQUENCE
    if isinstance(value, list):
        return Shape.SEQUENCE
    if dataclasses.is_dataclass(value):
        return Shape.RECORD
    if callable(value):
        return Shape.SCALAR
    if hasattr(value, "__dict__") or hasattr(type(value), "__slots__"):
        return Shape.RECORD
    return Shape.SCALAR


def is_named_tuple(value: Any) -> bool:
    return isinstance(value, tuple) and hasattr(type(value), "_fields")


def is_plain_record(value: Any) -> bool:
    """True for records whose contents are data: dataclasses, NamedTuples, namespaces.

    Other attribute-carrying objects are opaque: they can be stepped through,
    but deep clones and dev-mode locks leave them alone.
    """
    if is_named_tuple(value) or isinstance(value, types.SimpleNamespace):
        return True
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def is_frozen_record(value: Any) -> bool:
    params = getattr(type(value), "__dataclass_params__", None)
    return params is not None and params.frozen


def type_name(value: Any) -> str:
    """Human-readable type name used in error messages."""
    if value is None:
        return "None"
    if value is MISSING:
        return "missing"
    cls = getattr(type(value), "__lock_base__", type(value))
    return cls.__name__


def instance_state(record: Any) -> dict[str, Any]:
    """All instance attributes of a record, from __dict__ and __slots__."""
    state = dict(getattr(record, "__dict__", {}))
    for cls in type(record).__mro__:
        slots = cls.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if name in ("__dict__", "__weakref__") or name in state:
                continue
            try:
                state[name] = object.__getattribute__(record, name)
            except AttributeError:
                continue
    return state


def rebuild_record(cls: type, state: Mapping[str, Any]) -> Any:
    """Create an instance of `cls` holding `state` without running __init__."""
    instance = cls.__new__(cls)
    for name, value in state.items():
        object.__setattr__(instance, name, value)
    return instance


def is_rebuilt_on_write(node: Any) -> bool:
    """Immutable containers are rebuilt by every write instead of copied once."""
    return isinstance(node, (tuple, frozenset))


def shallow_copy(node: Any) -> Any:
    """One-level copy of a container. Locked values come back unlocked."""
    node_type = type(node)
    if node_type is dict or node_type is list or node_type is set:
        return node.copy()
    if isinstance(node, Mapping) and not isinstance(node, MutableMapping):
        return dict(node)
    return copy.copy(node)


# -- checks -----------------------------------------------------------------


def check_step(node: Any, shape: Shape, step: Step) -> None:
    """Raise CollectionAccessError if `step` cannot address children of `node`."""
    name = type_name(node)
    match step:
        case PropertyStep() | IndexStep() if shape in (Shape.MAPPING, Shape.SET):
            raise CollectionAccessError(
                f'Cannot edit property "{step.label}" of {name}. Use key() instead.',
                segment=step.label,
                container=name,
            )
        case KeyStep() if shape not in (Shape.MAPPING, Shape.SET):
            raise CollectionAccessError(
                f"Cannot use {step.label} on {name}: key() only addresses mapping and set entries.",
                segment=step.label,
                container=name,
            )
        case IndexStep() if shape is Shape.RECORD:
            raise CollectionAccessError(
                f"Cannot use index {step.label} on {name}. Use attribute access instead.",
                segment=step.label,
                container=name,
            )
        case PropertyStep() if shape is Shape.SEQUENCE:
            raise CollectionAccessError(
                f'Cannot edit property "{step.label}" of {name}. Use an integer index instead.',
                segment=step.label,
                container=name,
            )


# -- reads ------------------------------------------------------------------


def read_child(node: Any, shape: Shape, step: Step) -> Any:
    """Read the child addressed by `step`, or MISSING if it does not exist."""
    match shape, step:
        case Shape.RECORD, PropertyStep(name=name):
            return getattr(node, name, MISSING)
        case Shape.SEQUENCE, IndexStep(position=position):
            if -len(node) <= position < len(node):
                return node[position]
            return MISSING
        case Shape.MAPPING, KeyStep(key=k):
            # `in` first: reading a defaultdict would insert the key.
            return node[k] if k in node else MISSING
        case Shape.SET, KeyStep(key=k):
            return k if k in node else MISSING
    raise AssertionError(f"unchecked step {step!r} on {shape}")


# -- writes -----------------------------------------------------------------


def set_child(node: Any, shape: Shape, step: Step, value: Any) -> Any:
    match shape, step:
        case Shape.RECORD, PropertyStep(name=name):
            if is_named_tuple(node):
                if name not in type(node)._fields:
                    raise UnsupportedOperationError(
                        f'Cannot add property "{name}" to {type_name(node)}'
                    )
                return node._replace(**{name: value})
            try:
                if is_frozen_record(node):
                    object.__setattr__(node, name, value)
                else:
                    setattr(node, name, value)
            except AttributeError as e:
                raise UnsupportedOperationError(
                    f'Cannot set property "{name}" of {type_name(node)}'
                ) from e
            return node
        case Shape.SEQUENCE, IndexStep(position=position):
            return _set_position(node, position, value)
        case Shape.MAPPING, KeyStep(key=k):
            node[k] = value
            return node
        case Shape.SET, KeyStep():
            raise UnsupportedOperationError(
                f"Cannot replace {step.label} of {type_name(node)}: set elements have no "
                "position. Delete the element and append the new one instead."
            )
    raise AssertionError(f"unchecked step {step!r} on {shape}")


def _set_position(node: Any, position: int, value: Any) -> Any:
    length = len(node)
    if position == length:
        if isinstance(node, tuple):
            return type(node)((*node, value))
        node.append(value)
        return node
    if not -length <= position < length:
        raise UnsupportedOperationError(
            f"Cannot set index {position} of {type_name(node)} with length {length}"
        )
    if isinstance(node, tuple):
        items = list(node)
        items[position] = value
        return type(node)(items)
    node[position] = value
    return node


def delete_child(node: Any, shape: Shape, step: Step) -> Any:
    match shape, step:
        case Shape.RECORD, PropertyStep(name=name):
            if is_named_tuple(node):
                raise UnsupportedOperationError(
                    f'Cannot delete property "{name}" of {type_name(node)}'
                )
            if not hasattr(node, name):
                return node
            if is_frozen_record(node):
                object.__delattr__(node, name)
            else:
                delattr(node, name)
            return node
        case Shape.SEQUENCE, IndexStep(position=position):
            if not -len(node) <= position < len(node):
                return node
            if isinstance(node, tuple):
                items = list(node)
                del items[position]
                return type(node)(items)
            del node[position]
            return node
        case Shape.MAPPING, KeyStep(key=k):
            node.pop(k, None)
            return node
        case Shape.SET, KeyStep(key=k):
            if isinstance(node, frozenset):
                return node - {k}
            node.discard(k)
            return node
    raise AssertionError(f"unchecked step {step!r} on {shape}")


def append_values(node: Any, values: Iterable[Any]) -> Any:
    shape = classify(node)
    if shape is Shape.SEQUENCE:
        if isinstance(node, tuple):
            return type(node)((*node, *values))
        node.extend(values)
        return node
    if shape is Shape.SET:
        if isinstance(node, frozenset):
            return node.union(values)
        node.update(values)
        return node
    raise UnsupportedOperationError(f"Cannot add to {type_name(node)}")
