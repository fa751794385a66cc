from __future__ import annotations

from typing import Any, Callable

from forkpath.batch.Draft import Draft
from forkpath.batch.runner import run_batch
from forkpath.devmode.EditContext import EditContext
from forkpath.store.Action import Action, BoundAction
from forkpath.store.Subscribers import SubscriberCallback, Subscribers


class Store[S]:
    """A state container holding one immutable state tree.

    A Store can be passed as the root of any entry point: the edit reads the
    current state, and the new state is committed back with `set()`.

        store = Store(State(user=User(name="Ada")))
        replace_in(store).user.name("Grace")
        store.get().user.name  # "Grace"

    Subclasses declare actions, which run as one batch against the store:

        class AppStore(Store[State]):
            @Store.action
            @staticmethod
            def rename(draft: Draft[State], name: str) -> None:
                replace_in(draft).user.name(name)

        AppStore(state).rename("Grace")
    """

    _state: S
    _actions: dict[str, BoundAction[Any]]
    _subscribers: Subscribers
    _context: EditContext | None

    @staticmethod
    def action[T, St](handler: Callable[[Draft[St], T], Any]) -> Action[T, St]:
        """Decorator to define an action on a Store subclass."""
        return Action(handler)

    def __init__(self, initial_state: S, *, context: EditContext | None = None):
        self._state = initial_state
        self._actions = {}
        self._subscribers = Subscribers()
        self._context = context
        self._bind_actions()

    def _bind_actions(self) -> None:
        """Find all Action class attributes and bind them to this instance."""
        for name in dir(type(self)):
            if name.startswith("_"):
                continue
            attr = getattr(type(self), name)
            if isinstance(attr, Action):
                bound_action = self._bind(attr)
                self._actions[name] = bound_action
                setattr(self, name, bound_action)

    def _bind[T](self, action: Action[T, S]) -> BoundAction[T]:
        def bound(payload: T) -> Any:
            return run_batch(
                self,
                lambda draft: action.handler(draft, payload),
                context=self._context,
            )

        return bound

    def get_actions(self, *names: str) -> dict[str, BoundAction[Any]]:
        """Get bound actions by name. If no names provided, returns all actions."""
        if not names:
            return self._actions.copy()
        return {n: self._actions[n] for n in names if n in self._actions}

    def get(self) -> S:
        return self._state

    def set(self, new_state: S) -> None:
        old_state = self._state
        self._state = new_state
        self._subscribers.notify(old_state, new_state)

    def subscribe(self, callback: SubscriberCallback) -> Callable[[], None]:
        """Call `callback` with the new state after every commit.

        Returns:
            A function that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            self._subscribers.remove(callback)

        return unsubscribe

    @property
    def __state_container__(self) -> Store[S]:
        return self
