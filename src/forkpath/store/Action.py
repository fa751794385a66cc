from __future__ import annotations

from collections.abc import Awaitable
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from forkpath.batch.Draft import Draft

# Type alias for bound actions (after binding to a Store instance)
type BoundAction[T] = Callable[[T], Any]


class Action[T, S]:
    """An action that can be defined as a class attribute on a Store subclass.

    T: The payload type
    S: The state type

    The handler receives a Draft of the store's state and the payload. It edits
    the draft with the path entry points; everything it does is committed to
    the store as one batch. Async handlers make the bound action return a
    coroutine.
    """

    handler: Callable[[Draft[S], T], None | Awaitable[None]]

    def __init__(self, handler: Callable[[Draft[S], T], None | Awaitable[None]]):
        self.handler = handler

    def __call__(self, payload: T) -> None:
        # This is only called if accessed on the class directly (not via instance)
        raise RuntimeError(
            "Action must be accessed via a Store instance, not the class. "
            "Use store.action_name() instead of StoreClass.action_name()"
        )
