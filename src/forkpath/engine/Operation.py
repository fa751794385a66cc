from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Replace:
    """Store `value` at the leaf.

    The value is deep-cloned on the way in unless `clone` is False, which the
    engine uses for values it built itself (transform results, folded drafts).
    """

    value: Any
    clone: bool = True


@dataclass(frozen=True, slots=True)
class Transform:
    """Store `fn(current_leaf)` at the leaf. `fn` may return an awaitable."""

    fn: Callable[[Any], Any]


@dataclass(frozen=True, slots=True)
class Delete:
    pass


@dataclass(frozen=True, slots=True)
class Append:
    """Extend a sequence leaf, or add elements to a set leaf."""

    values: tuple[Any, ...]


type Operation = Replace | Transform | Delete | Append


def replace_or_transform(value: Any) -> Operation:
    """Pick the operation for a `replace_in` terminal argument.

    Callables that are not classes become transforms. Classes and all other
    values are stored as they are.
    """
    if callable(value) and not isinstance(value, type):
        return Transform(value)
    return Replace(value)
