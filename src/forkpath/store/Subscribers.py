"""Subscription management for Store."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

# Callback receives the newly committed state
type SubscriberCallback = Callable[[Any], None]


class Subscribers:
    """Manages store subscription callbacks.

    Subscribers are called with the new state after every commit that
    replaced the state object. Commits that hand back the very same object
    do not notify.
    """

    _callbacks: list[SubscriberCallback]

    def __init__(self) -> None:
        self._callbacks = []

    def append(self, callback: SubscriberCallback) -> None:
        """Add a subscription callback."""
        self._callbacks.append(callback)

    def remove(self, callback: SubscriberCallback) -> None:
        """Remove a subscription callback."""
        self._callbacks.remove(callback)

    def notify(self, old_state: Any, new_state: Any) -> None:
        """Notify all subscribers of a new state.

        Args:
            old_state: The state before the commit
            new_state: The committed state
        """
        if new_state is old_state:
            return

        # Copy so callbacks may unsubscribe while being notified
        for callback in list(self._callbacks):
            callback(new_state)
