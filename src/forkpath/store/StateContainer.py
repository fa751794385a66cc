"""State container protocol.

Entry points accept, in place of a bare root, any object whose
`__state_container__` attribute is an accessor with `get()` and `set(value)`.
The engine reads the current root with `get()`, applies the edit and commits
the new root with `set()`. Either method may return an awaitable, in which
case the entry point returns a coroutine.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, runtime_checkable

STATE_CONTAINER_ATTR = "__state_container__"


@runtime_checkable
class Accessor[S](Protocol):
    def get(self) -> S | Awaitable[S]: ...

    def set(self, value: S) -> None | Awaitable[None]: ...


class StateContainer[S]:
    """Accessor built from a getter and a setter.

    Example:
        >>> holder = {"state": initial}
        >>> container = StateContainer(
        ...     lambda: holder["state"],
        ...     lambda value: holder.__setitem__("state", value),
        ... )
        >>> replace_in(container).user.name("Ada")
    """

    _get: Callable[[], S | Awaitable[S]]
    _set: Callable[[S], None | Awaitable[None]]

    def __init__(
        self,
        get: Callable[[], S | Awaitable[S]],
        set: Callable[[S], None | Awaitable[None]],
    ) -> None:
        self._get = get
        self._set = set

    def get(self) -> S | Awaitable[S]:
        return self._get()

    def set(self, value: S) -> None | Awaitable[None]:
        return self._set(value)

    @property
    def __state_container__(self) -> StateContainer[S]:
        return self

    def __repr__(self) -> str:
        return f"StateContainer(get={self._get!r}, set={self._set!r})"


def state_container_of(value: Any) -> Accessor[Any] | None:
    """The accessor `value` exposes, or None for a bare root."""
    if isinstance(value, type):
        return None
    return getattr(value, STATE_CONTAINER_ATTR, None)
