"""Frame orchestration for entry points.

Every entry point runs inside a frame. Called on a bare root or a state
container, it opens a top-level frame, runs its body and commits the frame's
working copy once: the value is locked in dev mode, then returned or handed
to the container's `set()`. Called on a Draft, it runs in the draft's frame
and the enclosing batch commits later.

Bodies and container accessors may return awaitables. The first awaitable
turns the rest of the flow into a coroutine, which the entry point returns.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from forkpath.batch.Draft import Draft
from forkpath.batch.Frame import BatchFrame, frame_pool
from forkpath.devmode.EditContext import EditContext, resolve_context
from forkpath.devmode.lock import lock
from forkpath.engine.apply import NOT_REACHABLE, apply, walk
from forkpath.engine.Operation import Operation
from forkpath.engine.shapes import MISSING, type_name
from forkpath.path.Path import Path
from forkpath.store.StateContainer import Accessor, state_container_of

logger = logging.getLogger(__name__)

type Body = Callable[[BatchFrame], Any]


# -- top-level frames -------------------------------------------------------


def _with_top_frame(
    root: Any, context: EditContext, body: Body, *, force_clone: bool = False
) -> Any:
    accessor = state_container_of(root)
    if accessor is None:
        return _run_top(root, context, body, None, force_clone)
    current = accessor.get()
    if inspect.isawaitable(current):
        return _run_after_get(current, context, body, accessor, force_clone)
    if current is None:
        logger.debug("state container returned None; skipping write")
        return NOT_REACHABLE
    return _run_top(current, context, body, accessor, force_clone)


async def _run_after_get(
    pending: Awaitable[Any],
    context: EditContext,
    body: Body,
    accessor: Accessor[Any],
    force_clone: bool,
) -> Any:
    current = await pending
    if current is None:
        logger.debug("state container returned None; skipping write")
        return NOT_REACHABLE
    result = _run_top(current, context, body, accessor, force_clone)
    if inspect.isawaitable(result):
        return await result
    return result


def _run_top(
    root: Any,
    context: EditContext,
    body: Body,
    accessor: Accessor[Any] | None,
    force_clone: bool,
) -> Any:
    frame = frame_pool.acquire(root, context)
    try:
        outcome = body(frame)
    except BaseException:
        frame.close()
        raise
    if inspect.isawaitable(outcome):
        return _finish_async(frame, outcome, accessor, force_clone)
    return _commit(frame, outcome, accessor, force_clone)


async def _finish_async(
    frame: BatchFrame,
    outcome: Awaitable[Any],
    accessor: Accessor[Any] | None,
    force_clone: bool,
) -> Any:
    try:
        result = await outcome
    except BaseException:
        frame.close()
        raise
    committed = _commit(frame, result, accessor, force_clone)
    if inspect.isawaitable(committed):
        return await committed
    return committed


def _commit(
    frame: BatchFrame, outcome: Any, accessor: Accessor[Any] | None, force_clone: bool
) -> Any:
    try:
        if outcome is NOT_REACHABLE:
            return NOT_REACHABLE
        if force_clone:
            frame.touch_root()
        value = frame.working
        if frame.context.is_dev_mode():
            value = lock(value)
    finally:
        frame.close()
    logger.debug("committing %s", type_name(value))
    if accessor is None:
        return value
    written = accessor.set(value)
    if inspect.isawaitable(written):
        return _await_set(written, value)
    return value


async def _await_set(written: Awaitable[Any], value: Any) -> Any:
    await written
    return value


# -- nested frames ----------------------------------------------------------


def _replaces_node(result: Any) -> bool:
    """Whether a callback's return value becomes the edited node."""
    return result is not None and result is not NOT_REACHABLE and not isinstance(result, Draft)


def _edit_in_frame(parent: BatchFrame, path: Path, fn: Callable[[Draft[Any]], Any]) -> Any:
    found = walk(parent.working, path)
    if found is NOT_REACHABLE or found.leaf is MISSING:
        logger.debug("path %s not reachable", path)
        return NOT_REACHABLE
    child = frame_pool.acquire_child(parent, path)
    try:
        result = fn(Draft(child))
    except BaseException:
        child.close()
        raise
    if inspect.isawaitable(result):
        return _fold_async(parent, child, result)
    return _fold(parent, child, result)


async def _fold_async(parent: BatchFrame, child: BatchFrame, pending: Awaitable[Any]) -> Any:
    try:
        result = await pending
    except BaseException:
        child.close()
        raise
    return _fold(parent, child, result)


def _fold(parent: BatchFrame, child: BatchFrame, result: Any) -> Any:
    """Finish a child frame; its edits are already in the parent's working copy."""
    try:
        if _replaces_node(result):
            child.working = result
        else:
            child.touch_root()
        return parent.working
    finally:
        child.close()


def _take_returned(frame: BatchFrame, result: Any) -> None:
    if _replaces_node(result):
        frame.working = result


async def _drain(frame: BatchFrame, pending: Awaitable[Any]) -> None:
    _take_returned(frame, await pending)


# -- entry flows ------------------------------------------------------------


def run_operation(
    root: Any, path: Path, operation: Operation, context: EditContext | None = None
) -> Any:
    """Apply one operation to a bare root, a state container or a Draft."""
    if isinstance(root, Draft):
        return apply(root.frame, path, operation)
    return _with_top_frame(
        root, resolve_context(context), lambda frame: apply(frame, path, operation)
    )


def run_edit(
    root: Any,
    path: Path,
    fn: Callable[[Draft[Any]], Any],
    context: EditContext | None = None,
) -> Any:
    """Edit the value at `path` through a nested draft.

    `fn` receives a Draft over the leaf and is not called if the leaf is
    absent. If it returns a value other than None, that value becomes the new
    leaf; otherwise the draft's working copy does.
    """
    if isinstance(root, Draft):
        return _edit_in_frame(root.frame, path, fn)
    return _with_top_frame(
        root,
        resolve_context(context),
        lambda frame: _edit_in_frame(frame, path, fn),
    )


def run_batch[S](
    root: S | Draft[S],
    callback: Callable[[Draft[S]], Any],
    *,
    context: EditContext | None = None,
) -> Any:
    """Run `callback` against one working copy and commit once.

    Every entry point called with the draft as its root edits the same working
    copy. The result is committed when `callback` returns, or when the
    awaitable it returned completes: it is returned for a bare root, passed to
    `set()` for a state container, or written into the enclosing batch for a
    Draft root. A nested batch edits the enclosing batch's working copy as it
    goes, so edits the enclosing batch makes in the meantime are kept.

    If `callback` returns a value other than None (or a Draft), that value is
    committed in place of the working copy.

    If `callback` raises, nothing is committed and the error propagates.

    Args:
        root: A bare root, a state container or the draft of an open batch
        callback: Receives the Draft of the new frame. May be async.
        context: Settings for this batch; defaults to the process default.
            Ignored for Draft roots, which use their batch's settings.

    Returns:
        The committed root (a coroutine resolving to it if `callback` or the
        state container is async), or NOT_REACHABLE
    """
    if isinstance(root, Draft):
        return _edit_in_frame(root.frame, Path.ROOT, callback)

    def body(frame: BatchFrame) -> Any:
        result = callback(Draft(frame))
        if inspect.isawaitable(result):
            return _drain(frame, result)
        _take_returned(frame, result)
        return None

    return _with_top_frame(root, resolve_context(context), body, force_clone=True)
