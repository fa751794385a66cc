"""Structurally shared edits of immutable state trees, addressed by fluent paths."""

from forkpath.api import append_in, delete_in, edit_in, get_in, replace_in, run_batch
from forkpath.batch.Draft import Draft
from forkpath.devmode.EditContext import EditContext, is_dev_mode, set_dev_mode
from forkpath.devmode.lock import is_locked
from forkpath.engine.apply import NOT_REACHABLE
from forkpath.engine.clone import deep_clone
from forkpath.errors import (
    BatchClosedError,
    CollectionAccessError,
    ForkpathError,
    LockedValueError,
    PathTypeError,
    UnsupportedOperationError,
)
from forkpath.path.Path import Path
from forkpath.path.Step import key
from forkpath.store.StateContainer import STATE_CONTAINER_ATTR, StateContainer
from forkpath.store.Store import Store

__all__ = [
    "NOT_REACHABLE",
    "STATE_CONTAINER_ATTR",
    "BatchClosedError",
    "CollectionAccessError",
    "Draft",
    "EditContext",
    "ForkpathError",
    "LockedValueError",
    "Path",
    "PathTypeError",
    "StateContainer",
    "Store",
    "UnsupportedOperationError",
    "append_in",
    "deep_clone",
    "delete_in",
    "edit_in",
    "get_in",
    "is_dev_mode",
    "is_locked",
    "key",
    "replace_in",
    "run_batch",
    "set_dev_mode",
]
