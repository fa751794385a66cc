"""Recursive write-locking of committed results.

Builtins cannot be frozen in place, so locking builds locked twins:

- `dict`, `list` and `set` become `LockedDict`, `LockedList` and `LockedSet`,
  subclasses whose mutators raise LockedValueError;
- mutable dataclass instances and SimpleNamespaces become instances of a
  generated `Locked<Class>` subclass whose `__setattr__` and `__delattr__`
  raise;
- tuples, NamedTuples, frozensets and frozen dataclasses already reject writes
  and are only rebuilt when one of their children had to be locked.

Locked values compare equal to their unlocked counterparts and remain
instances of the original type. `copy.copy` and `copy.deepcopy` of a locked
value produce ordinary, writable values.

Values that are already locked are returned unchanged, so a tree that went
through a previous dev-mode commit keeps sharing its untouched subtrees.
Scalars, mappings other than `dict`, and opaque objects are left as they are.
"""

from __future__ import annotations

import dataclasses
import functools
from collections.abc import Callable
from typing import Any, NoReturn

from forkpath.engine.clone import deep_clone
from forkpath.engine.shapes import (
    Shape,
    classify,
    instance_state,
    is_frozen_record,
    is_named_tuple,
    is_plain_record,
    rebuild_record,
)
from forkpath.errors import LockedValueError


def _refuse(name: str) -> Callable[..., NoReturn]:
    def method(self: Any, *args: Any, **kwargs: Any) -> NoReturn:
        base = type(self).__lock_base__.__name__
        raise LockedValueError(
            f"Cannot call {name}() on a locked {base}: dev mode froze this value. "
            "Produce a new value with replace_in() or run_batch() instead."
        )

    method.__name__ = name
    return method


def _refusing[C: type](*names: str) -> Callable[[C], C]:
    """Class decorator replacing the named mutators with ones that raise."""

    def decorate(cls: C) -> C:
        for name in names:
            setattr(cls, name, _refuse(name))
        return cls

    return decorate


@_refusing("__setitem__", "__delitem__", "__ior__", "clear", "pop", "popitem", "setdefault", "update")
class LockedDict(dict):  # pyright: ignore[reportMissingTypeArgument]
    __slots__ = ()
    __lock_base__ = dict

    def __copy__(self) -> dict[Any, Any]:
        return dict(self)

    def __deepcopy__(self, memo: dict[int, Any]) -> dict[Any, Any]:
        return deep_clone(self)

    def __reduce__(self) -> tuple[Any, ...]:
        return (LockedDict, (dict(self),))

    def __repr__(self) -> str:
        return f"LockedDict({dict.__repr__(self)})"


@_refusing(
    "__setitem__",
    "__delitem__",
    "__iadd__",
    "__imul__",
    "append",
    "clear",
    "extend",
    "insert",
    "pop",
    "remove",
    "reverse",
    "sort",
)
class LockedList(list):  # pyright: ignore[reportMissingTypeArgument]
    __slots__ = ()
    __lock_base__ = list

    def __copy__(self) -> list[Any]:
        return list(self)

    def __deepcopy__(self, memo: dict[int, Any]) -> list[Any]:
        return deep_clone(self)

    def __reduce__(self) -> tuple[Any, ...]:
        return (LockedList, (list(self),))

    def __repr__(self) -> str:
        return f"LockedList({list.__repr__(self)})"


@_refusing(
    "__iand__",
    "__ior__",
    "__isub__",
    "__ixor__",
    "add",
    "clear",
    "difference_update",
    "discard",
    "intersection_update",
    "pop",
    "remove",
    "symmetric_difference_update",
    "update",
)
class LockedSet(set):  # pyright: ignore[reportMissingTypeArgument]
    __slots__ = ()
    __lock_base__ = set

    def __copy__(self) -> set[Any]:
        return set(self)

    def __deepcopy__(self, memo: dict[int, Any]) -> set[Any]:
        return deep_clone(self)

    def __reduce__(self) -> tuple[Any, ...]:
        return (LockedSet, (set(self),))

    def __repr__(self) -> str:
        return f"LockedSet({set.__repr__(self)})"


# -- records ----------------------------------------------------------------


def _comparable(record: Any) -> tuple[Any, ...] | dict[str, Any]:
    base = getattr(type(record), "__lock_base__", type(record))
    if dataclasses.is_dataclass(base):
        return tuple(getattr(record, f.name) for f in dataclasses.fields(base) if f.compare)
    return instance_state(record)


def _record_eq(self: Any, other: Any) -> Any:
    if not isinstance(other, type(self).__lock_base__):
        return NotImplemented
    return _comparable(self) == _comparable(other)


def _record_setattr(self: Any, name: str, value: Any) -> NoReturn:
    raise LockedValueError(
        f'Cannot set property "{name}" of a locked {type(self).__lock_base__.__name__}: '
        "dev mode froze this value. Produce a new value with replace_in() instead."
    )


def _record_delattr(self: Any, name: str) -> NoReturn:
    raise LockedValueError(
        f'Cannot delete property "{name}" of a locked {type(self).__lock_base__.__name__}: '
        "dev mode froze this value. Produce a new value with delete_in() instead."
    )


def _record_copy(self: Any) -> Any:
    return rebuild_record(type(self).__lock_base__, instance_state(self))


def _record_deepcopy(self: Any, memo: dict[int, Any]) -> Any:
    return deep_clone(self)


def _record_reduce(self: Any) -> tuple[Any, ...]:
    return (_relock_record, (type(self).__lock_base__, instance_state(self)))


def _relock_record(base: type, state: dict[str, Any]) -> Any:
    return rebuild_record(locked_class(base), state)


@functools.cache
def locked_class(base: type) -> type:
    """The generated `Locked<Name>` subclass of a mutable record class."""
    namespace: dict[str, Any] = {
        "__slots__": (),
        "__lock_base__": base,
        "__module__": base.__module__,
        "__setattr__": _record_setattr,
        "__delattr__": _record_delattr,
        "__copy__": _record_copy,
        "__deepcopy__": _record_deepcopy,
        "__reduce__": _record_reduce,
    }
    if base.__eq__ is not object.__eq__:
        namespace["__eq__"] = _record_eq
        namespace["__hash__"] = base.__hash__
    return type(f"Locked{base.__name__}", (base,), namespace)


# -- public -----------------------------------------------------------------


def is_locked(value: Any) -> bool:
    """Whether `value` itself rejects writes. Children are not inspected."""
    if classify(value) is Shape.SCALAR:
        return not isinstance(value, bytearray)
    if getattr(type(value), "__lock_base__", None) is not None:
        return True
    return isinstance(value, (tuple, frozenset)) or is_frozen_record(value)


def lock[V](value: V) -> V:
    """Return a recursively locked version of `value`.

    Args:
        value: A committed result

    Returns:
        `value` itself where nothing needed locking, otherwise a locked twin
        sharing every subtree that was already locked
    """
    return _lock(value, {})


def _lock(value: Any, memo: dict[int, Any]) -> Any:
    if getattr(type(value), "__lock_base__", None) is not None:
        return value
    done = memo.get(id(value))
    if done is not None:
        return done
    result = _lock_node(value, classify(value), memo)
    memo[id(value)] = result
    return result


def _lock_node(value: Any, shape: Shape, memo: dict[int, Any]) -> Any:
    match shape:
        case Shape.SCALAR:
            return value
        case Shape.MAPPING if type(value) is dict:
            return LockedDict({_lock(k, memo): _lock(v, memo) for k, v in value.items()})
        case Shape.SEQUENCE if type(value) is list:
            return LockedList(_lock(item, memo) for item in value)
        case Shape.SET if type(value) is set:
            return LockedSet(_lock(item, memo) for item in value)
        case Shape.SEQUENCE | Shape.SET if isinstance(value, (tuple, frozenset)):
            items = [_lock(item, memo) for item in value]
            if all(new is old for new, old in zip(items, value)):
                return value
            return type(value)(items)
        case Shape.RECORD if is_named_tuple(value):
            items = [_lock(item, memo) for item in value]
            if all(new is old for new, old in zip(items, value)):
                return value
            return value._make(items)
        case Shape.RECORD if is_plain_record(value):
            state = instance_state(value)
            locked_state = {name: _lock(v, memo) for name, v in state.items()}
            if is_frozen_record(value):
                if all(locked_state[name] is v for name, v in state.items()):
                    return value
                return rebuild_record(type(value), locked_state)
            return rebuild_record(locked_class(type(value)), locked_state)
    return value
