from __future__ import annotations

from typing import cast

from forkpath.batch.Frame import BatchFrame
from forkpath.errors import BatchClosedError


class Draft[S]:
    """Handle on an open batch, passed to batch and edit callbacks.

    Pass the draft as the root of any entry point to edit the batch's working
    copy:

        def rename(draft: Draft[State]) -> None:
            replace_in(draft).user.name("Ada")
            append_in(draft).log("renamed")

        new_state = run_batch(state, rename)

    `value` gives direct access to the working copy. Reading it makes the
    top-level node a private copy, so it is safe to assign attributes or items
    on it; nested nodes are still shared until an entry point clones them.

    A draft is only valid while its batch is open.
    """

    __slots__ = ("_frame", "_generation")

    _frame: BatchFrame
    _generation: int

    def __init__(self, frame: BatchFrame) -> None:
        self._frame = frame
        self._generation = frame.generation

    @property
    def frame(self) -> BatchFrame:
        frame = self._frame
        if frame.closed or frame.generation != self._generation:
            raise BatchClosedError("This batch is closed; its draft can no longer be used")
        return frame

    @property
    def value(self) -> S:
        return cast(S, self.frame.touch_root())

    @property
    def is_open(self) -> bool:
        return not self._frame.closed and self._frame.generation == self._generation

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"<Draft {state}>"
