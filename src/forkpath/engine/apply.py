"""Apply engine: replay a recorded path against a frame's working copy.

An apply runs in two passes. The walk reads every node on the path, checks
that each step fits the container it addresses, and decides what an absent
intermediate means, all before anything is copied. Only then is the leaf
operation applied and the ancestor chain relinked bottom-up, each ancestor
being shallow-copied once per frame (the clone frontier). Nodes off the path
are never visited.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from forkpath.engine.clone import deep_clone
from forkpath.engine.hints import UNKNOWN, allows_none, child_hint
from forkpath.engine.Operation import Append, Delete, Operation, Replace, Transform
from forkpath.engine.shapes import (
    MISSING,
    Shape,
    append_values,
    check_step,
    classify,
    delete_child,
    read_child,
    set_child,
    type_name,
)
from forkpath.errors import PathTypeError, UnsupportedOperationError
from forkpath.path.Path import Path
from forkpath.path.Step import PropertyStep, Step

if TYPE_CHECKING:
    from forkpath.batch.Frame import BatchFrame

logger = logging.getLogger(__name__)


class _NotReachable:
    """Result of an operation whose path runs through an absent optional slot."""

    __slots__ = ()
    _instance: _NotReachable | None = None

    def __new__(cls) -> _NotReachable:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_REACHABLE"

    def __reduce__(self) -> str:
        return "NOT_REACHABLE"


NOT_REACHABLE: Any = _NotReachable()


@dataclass(slots=True)
class Walk:
    """Nodes read along a path.

    Attributes:
        chain: (node, shape) for every container the path steps through,
            root first. `chain[i]` holds the slot addressed by `path.steps[i]`.
        leaf: Value at the end of the path, or MISSING.
        leaf_optional: Whether the leaf slot may hold None.
    """

    chain: list[tuple[Any, Shape]]
    leaf: Any
    leaf_optional: bool


def _slot_is_optional(hint: Any, step: Step | None) -> bool:
    known = allows_none(hint)
    if known is not None:
        return known
    # Unannotated record fields and the root may be absent; container slots may not.
    return step is None or isinstance(step, PropertyStep)


def walk(root: Any, path: Path) -> Walk | Any:
    """Read every node on `path` without copying anything.

    Returns:
        The Walk, or NOT_REACHABLE if an absent intermediate sits in an
        optional slot

    Raises:
        PathTypeError: An absent intermediate sits in a required slot, or an
            intermediate is not a container
        CollectionAccessError: A step does not fit its container
    """
    chain: list[tuple[Any, Shape]] = []
    node = root
    hint: Any = UNKNOWN
    optional = True
    last = len(path.steps) - 1
    for i, step in enumerate(path.steps):
        if node is None or node is MISSING:
            if optional:
                return NOT_REACHABLE
            raise PathTypeError.absent(step.label, type_name(node))
        shape = classify(node)
        if shape is Shape.SCALAR:
            raise PathTypeError.not_a_container(step.label, type_name(node))
        check_step(node, shape, step)
        if shape is Shape.SET and i < last:
            raise UnsupportedOperationError(
                f"Cannot step through {step.label} of {type_name(node)}: "
                "set elements can only be deleted"
            )
        chain.append((node, shape))
        hint = child_hint(node, hint, step)
        optional = _slot_is_optional(hint, step)
        node = read_child(node, shape, step)
    return Walk(chain, node, optional)


def read(root: Any, path: Path) -> Any:
    """Value at `path`, None for a missing leaf, or NOT_REACHABLE."""
    result = walk(root, path)
    if result is NOT_REACHABLE:
        return NOT_REACHABLE
    return None if result.leaf is MISSING else result.leaf


def apply(frame: BatchFrame, path: Path, operation: Operation) -> Any:
    """Apply `operation` at `path` to the frame's working copy.

    The frame's working copy is replaced by the new root. Nodes the frame
    already owns are written in place; everything else on the path is
    shallow-copied once.

    Args:
        frame: The frame holding the working copy
        path: Where to apply the operation
        operation: What to do at the leaf

    Returns:
        The new working copy, NOT_REACHABLE, or a coroutine resolving to one
        of those if a transform returned an awaitable
    """
    frame.ensure_open()
    found = walk(frame.working, path)
    if found is NOT_REACHABLE:
        logger.debug("path %s not reachable", path)
        return NOT_REACHABLE
    match operation:
        case Replace(value=value, clone=clone):
            return _relink(frame, path, found, deep_clone(value) if clone else value)
        case Transform(fn=fn):
            if found.chain and found.chain[-1][1] is Shape.SET:
                parent = found.chain[-1][0]
                raise UnsupportedOperationError(
                    f"Cannot transform {path.steps[-1].label} of {type_name(parent)}: "
                    "set elements have no position"
                )
            if found.leaf is MISSING:
                logger.debug("path %s not reachable", path)
                return NOT_REACHABLE
            result = fn(found.leaf)
            if inspect.isawaitable(result):
                frame.begin_operation()
                return _finish_transform(frame, path, result)
            return _relink(frame, path, found, result)
        case Delete():
            if not found.chain:
                raise UnsupportedOperationError("Cannot delete the root")
            parent, shape = found.chain[-1]
            new_parent = delete_child(frame.own(parent), shape, path.steps[-1])
            return _relink(frame, path.parent, _shorten(found), new_parent)
        case Append(values=values):
            return _relink(frame, path, found, _append(frame, found, values))
    raise TypeError(f"Unknown operation {operation!r}")


def _append(frame: BatchFrame, found: Walk, values: tuple[Any, ...]) -> Any:
    leaf = found.leaf
    if leaf is None or leaf is MISSING:
        if found.leaf_optional:
            return NOT_REACHABLE
        raise UnsupportedOperationError(f"Cannot add to {type_name(leaf)}")
    if classify(leaf) not in (Shape.SEQUENCE, Shape.SET):
        raise UnsupportedOperationError(f"Cannot add to {type_name(leaf)}")
    return append_values(frame.own(leaf), [deep_clone(value) for value in values])


def _shorten(found: Walk) -> Walk:
    """The walk up to the parent of the leaf."""
    parent, _ = found.chain[-1]
    return Walk(found.chain[:-1], parent, False)


def _relink(frame: BatchFrame, path: Path, found: Walk, new_leaf: Any) -> Any:
    if new_leaf is NOT_REACHABLE:
        return NOT_REACHABLE
    new = new_leaf
    for (node, shape), step in zip(reversed(found.chain), reversed(path.steps)):
        new = set_child(frame.own(node), shape, step, new)
    frame.working = new
    return new


async def _finish_transform(frame: BatchFrame, path: Path, pending: Awaitable[Any]) -> Any:
    try:
        value = await pending
        return apply(frame, path, Replace(value, clone=False))
    finally:
        frame.end_operation()
