"""Batch frames and their pool.

A frame is the unit of mutation while a batch is open. A top-level frame holds
the working copy every apply clones against and remembers which nodes it
already cloned, so later edits write into them directly. It counts in-flight
async operations and open child frames.

A child frame (a nested batch, or the draft handed to an `edit_in` function)
has no copy of its own. Its working copy is the node at its path inside the
parent's current working copy, and writing it writes through to the parent.
Edits the parent makes while a child is suspended are therefore kept, and
cloned nodes are tracked once, by the top-level frame.

Frames are recycled through a pool. A frame goes back to the pool once it is
closed, has no in-flight operation and no open child.
"""

from __future__ import annotations

import logging
from typing import Any

from forkpath.devmode.EditContext import EditContext
from forkpath.engine.apply import NOT_REACHABLE, apply, read
from forkpath.engine.Operation import Replace
from forkpath.engine.shapes import Shape, classify, is_rebuilt_on_write, shallow_copy
from forkpath.errors import BatchClosedError
from forkpath.path.Path import Path

logger = logging.getLogger(__name__)


class BatchFrame:
    """Working copy plus bookkeeping for one open batch or one plain edit."""

    __slots__ = (
        "context",
        "pending",
        "children",
        "closed",
        "generation",
        "_working",
        "_parent",
        "_path",
        "_owned",
        "_pool",
    )

    context: EditContext
    pending: int
    children: int
    closed: bool
    generation: int
    _working: Any
    _parent: BatchFrame | None
    _path: Path
    _owned: dict[int, Any]
    _pool: FramePool

    def __init__(self, pool: FramePool) -> None:
        self._pool = pool
        self.generation = 0
        self._owned = {}
        self._reset()

    def _reset(self) -> None:
        self._working = None
        self.pending = 0
        self.children = 0
        self.closed = True
        self._parent = None
        self._path = Path.ROOT
        self._owned.clear()

    def _open(
        self, root: Any, context: EditContext, parent: BatchFrame | None, path: Path
    ) -> None:
        self.generation += 1
        self._working = root
        self.context = context
        self.closed = False
        self._parent = parent
        self._path = path

    @property
    def parent(self) -> BatchFrame | None:
        return self._parent

    @property
    def working(self) -> Any:
        if self._parent is None:
            return self._working
        node = read(self._parent.working, self._path)
        # The parent may have removed the node since this frame opened.
        return None if node is NOT_REACHABLE else node

    @working.setter
    def working(self, value: Any) -> None:
        if self._parent is None:
            self._working = value
        else:
            apply(self._parent, self._path, Replace(value, clone=False))

    def own(self, node: Any) -> Any:
        """Return a copy of `node` the batch may write in place.

        Nodes cloned earlier in the batch are returned as they are, as are
        scalars and immutable containers (writes rebuild those).
        """
        if self._parent is not None:
            return self._parent.own(node)
        if id(node) in self._owned or is_rebuilt_on_write(node):
            return node
        if classify(node) is Shape.SCALAR:
            return node
        clone = shallow_copy(node)
        self._owned[id(clone)] = clone
        return clone

    def touch_root(self) -> Any:
        """Force the clone of this frame's top node and return it."""
        node = self.own(self.working)
        self.working = node
        return node

    def ensure_open(self) -> None:
        if self.closed:
            raise BatchClosedError("This batch is closed; its draft can no longer be used")

    def begin_operation(self) -> None:
        self.pending += 1

    def end_operation(self) -> None:
        self.pending -= 1
        self._maybe_release()

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._maybe_release()

    def _child_released(self) -> None:
        self.children -= 1
        self._maybe_release()

    def _maybe_release(self) -> None:
        if not self.closed or self.pending or self.children:
            return
        parent = self._parent
        self._pool.release(self)
        if parent is not None:
            parent._child_released()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<BatchFrame gen={self.generation} {state} pending={self.pending}>"


class FramePool:
    """Free list of frames."""

    _idle: list[BatchFrame]
    created: int

    def __init__(self) -> None:
        self._idle = []
        self.created = 0

    def _take(self) -> BatchFrame:
        if self._idle:
            return self._idle.pop()
        self.created += 1
        logger.debug("frame pool grew to %d frames", self.created)
        return BatchFrame(self)

    def acquire(self, root: Any, context: EditContext) -> BatchFrame:
        """Open a top-level frame over `root`."""
        frame = self._take()
        frame._open(root, context, None, Path.ROOT)
        logger.debug("acquired %r", frame)
        return frame

    def acquire_child(self, parent: BatchFrame, path: Path) -> BatchFrame:
        """Open a frame editing the node at `path` inside `parent`."""
        frame = self._take()
        frame._open(None, parent.context, parent, path)
        parent.children += 1
        logger.debug("acquired %r at %s (parent=%r)", frame, path, parent)
        return frame

    def release(self, frame: BatchFrame) -> None:
        logger.debug("released %r", frame)
        frame._reset()
        self._idle.append(frame)

    @property
    def idle(self) -> int:
        return len(self._idle)


frame_pool = FramePool()
