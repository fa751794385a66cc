"""Fluent path recording.

A PathRecorder stands in for a value inside a root. Attribute access and
subscripts do not touch the root; they return a new recorder with one more
step. Calling a recorder ends the recording and hands the root, the finished
Path and the call arguments to the recorder's terminal function, which runs
the actual operation.

    replace_in(state).users[0].name("Ada")

records PropertyStep("users"), IndexStep(0), PropertyStep("name") and then
replaces the leaf with "Ada".

Recorders are immutable, so any number of them may be live over the same
root at once.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from forkpath.path.Path import Path
from forkpath.path.Step import STEP_TYPES, IndexStep, PropertyStep, Step

# (root, path, call arguments) -> result of the operation
type Terminal = Callable[[Any, Path, tuple[Any, ...]], Any]


class PathRecorder[R]:
    """Records attribute, index and key steps until it is called.

    R: The root type (kept for readers; steps are not statically typed)

    Attribute names that clash with the recorder's own members, or that are
    not identifiers, can be reached with a string subscript:
    `rec["_terminal"]`.
    """

    __slots__ = ("_root", "_path", "_terminal")

    _root: R
    _path: Path
    _terminal: Terminal

    def __init__(self, root: R, terminal: Terminal, path: Path = Path.ROOT) -> None:
        object.__setattr__(self, "_root", root)
        object.__setattr__(self, "_path", path)
        object.__setattr__(self, "_terminal", terminal)

    def _extend(self, step: Step) -> PathRecorder[R]:
        return PathRecorder(self._root, self._terminal, self._path.append(step))

    def __getattr__(self, name: str) -> PathRecorder[R]:
        # Dunder lookups come from copy, pickle, inspect and friends, never from a path.
        if name.startswith("__") and name.endswith("__"):
            raise AttributeError(name)
        return self._extend(PropertyStep(name))

    def __getitem__(self, item: Any) -> PathRecorder[R]:
        if isinstance(item, STEP_TYPES):
            return self._extend(item)
        if isinstance(item, bool):
            raise TypeError("Path subscripts cannot be booleans; wrap mapping keys with key()")
        if isinstance(item, int):
            return self._extend(IndexStep(item))
        if isinstance(item, str):
            return self._extend(PropertyStep(item))
        raise TypeError(
            f"Unsupported path subscript {item!r}: use an int for list positions, "
            "a str for attribute names, or key(...) for mapping and set entries"
        )

    def __setattr__(self, name: str, value: Any) -> None:
        raise TypeError(
            f"Cannot assign to {self._path.append(PropertyStep(name))} on a path recorder; "
            "call the recorder with the new value instead"
        )

    def __delattr__(self, name: str) -> None:
        raise TypeError("Cannot delete attributes of a path recorder; use delete_in()")

    def __call__(self, *args: Any) -> Any:
        return self._terminal(self._root, self._path, args)

    def __repr__(self) -> str:
        return f"PathRecorder({self._path})"


def path_of(recorder: PathRecorder[Any]) -> Path:
    """Return the path recorded so far, without running any operation."""
    return recorder._path  # pyright: ignore[reportPrivateUsage]
