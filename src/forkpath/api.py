"""Entry points.

Each entry point wraps a root in a PathRecorder. The path is recorded through
attribute access and subscripts, and calling the recorder runs the operation:

    new_state = replace_in(state).users[0].name("Ada")
    new_state = replace_in(state).users[0].visits(lambda n: n + 1)
    new_state = delete_in(state).settings[key("theme")]()
    new_state = append_in(state).users[0].tags("admin", "owner")
    new_state = edit_in(state).users[0](lambda draft: ...)

The root may be a bare value, a state container (anything exposing
`__state_container__`) or the Draft of an open batch.
"""

from __future__ import annotations

import functools
import inspect
from collections.abc import Awaitable
from typing import Any

from glom import glom

from forkpath.batch.Draft import Draft
from forkpath.batch.runner import run_batch, run_edit, run_operation
from forkpath.devmode.EditContext import EditContext
from forkpath.engine.apply import NOT_REACHABLE
from forkpath.engine.Operation import Append, Delete, replace_or_transform
from forkpath.path.Path import Path
from forkpath.path.PathRecorder import PathRecorder
from forkpath.store.StateContainer import state_container_of


def _replace_terminal(
    root: Any, path: Path, args: tuple[Any, ...], *, context: EditContext | None
) -> Any:
    if len(args) != 1:
        raise TypeError(
            f"replace_in() at {path} takes exactly one argument, the new value or "
            f"an updater function ({len(args)} given)"
        )
    return run_operation(root, path, replace_or_transform(args[0]), context)


def _edit_terminal(
    root: Any, path: Path, args: tuple[Any, ...], *, context: EditContext | None
) -> Any:
    if len(args) != 1 or not callable(args[0]):
        raise TypeError(f"edit_in() at {path} takes exactly one function receiving a Draft")
    return run_edit(root, path, args[0], context)


def _delete_terminal(
    root: Any, path: Path, args: tuple[Any, ...], *, context: EditContext | None
) -> Any:
    if args:
        raise TypeError(f"delete_in() at {path} takes no arguments ({len(args)} given)")
    return run_operation(root, path, Delete(), context)


def _append_terminal(
    root: Any, path: Path, args: tuple[Any, ...], *, context: EditContext | None
) -> Any:
    return run_operation(root, path, Append(args), context)


def replace_in[R](root: R, *, context: EditContext | None = None) -> PathRecorder[R]:
    """Replace or transform the value at a path.

    Calling the recorder with a value stores a deep copy of it. Calling it
    with a function (anything callable other than a class) stores
    `fn(current)`; if `fn` returns an awaitable, so does the call. `fn` is not
    called when the leaf does not exist. To store a function itself, wrap it:
    `rec(lambda _: fn)`.

    Returns:
        A recorder; its terminal call returns the new root, NOT_REACHABLE if the
        path runs through an absent optional value, or a coroutine
    """
    return PathRecorder(root, functools.partial(_replace_terminal, context=context))


def edit_in[R](root: R, *, context: EditContext | None = None) -> PathRecorder[R]:
    """Edit the value at a path through a nested draft.

    The terminal call takes a function receiving a Draft over the leaf. Entry
    points called on that draft all edit one copy of the leaf, which replaces
    the leaf when the function returns. If the function returns a value other
    than None, that value is stored instead. The function is not called when
    the leaf does not exist.
    """
    return PathRecorder(root, functools.partial(_edit_terminal, context=context))


def delete_in[R](root: R, *, context: EditContext | None = None) -> PathRecorder[R]:
    """Delete the attribute, item, entry or set element at a path.

    Missing items and entries are ignored.
    """
    return PathRecorder(root, functools.partial(_delete_terminal, context=context))


def append_in[R](root: R, *, context: EditContext | None = None) -> PathRecorder[R]:
    """Append values to the list or tuple at a path, or add them to a set."""
    return PathRecorder(root, functools.partial(_append_terminal, context=context))


def _read_target(root: Any) -> Any:
    if isinstance(root, Draft):
        return root.frame.working
    accessor = state_container_of(root)
    if accessor is None:
        return root
    return accessor.get()


def _read(root: Any, path: Path) -> Any:
    spec = path.to_spec()
    target = _read_target(root)
    if inspect.isawaitable(target):
        return _read_async(target, spec)
    return glom(target, spec, default=NOT_REACHABLE)


async def _read_async(target: Awaitable[Any], spec: Any) -> Any:
    return glom(await target, spec, default=NOT_REACHABLE)


def _get_terminal(root: Any, path: Path, args: tuple[Any, ...]) -> Any:
    if args:
        raise TypeError(f"get_in() at {path} takes no arguments ({len(args)} given)")
    return _read(root, path)


def get_in(root: Any, path: Path | None = None) -> Any:
    """Read the value at a path with glom.

    With a Path, returns the value at once. Without one, returns a recorder
    whose empty terminal call performs the read:

        get_in(state).users[0].name()

    Returns:
        The value, or NOT_REACHABLE if the path cannot be followed
    """
    if path is not None:
        return _read(root, path)
    return PathRecorder(root, _get_terminal)
