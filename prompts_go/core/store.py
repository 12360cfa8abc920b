"""Application store: the single mutable container around ``reduce``."""

from __future__ import annotations

import threading
from collections.abc import Callable

import structlog

from prompts_go.core.actions import BaseAction
from prompts_go.core.reducer import reduce
from prompts_go.core.state import AppState

logger = structlog.get_logger()

Listener = Callable[[AppState, BaseAction], None]


class AppStore:
    """Holds the latest ``AppState`` and applies dispatched actions in call order.

    Every mutation goes through ``dispatch``; the lock makes concurrent callers
    queue up so two actions are never reduced at the same time. Subscribers are
    notified after each action that produced a new state, outside the lock so
    they may dispatch follow-up actions.
    """

    def __init__(self, initial_state: AppState | None = None) -> None:
        self._state = initial_state or AppState()
        self._lock = threading.RLock()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> AppState:
        return self._state

    def dispatch(self, action: BaseAction) -> AppState:
        """Reduce ``action`` into the current state and return the new state."""
        with self._lock:
            previous = self._state
            current = reduce(previous, action)
            self._state = current
            listeners = list(self._listeners)

        if current is previous:
            logger.debug("store.noop", action=type(action).__name__)
            return current

        logger.debug("store.dispatch", action=type(action).__name__)
        for listener in listeners:
            try:
                listener(current, action)
            except Exception as e:
                logger.warning("store.listener_failed", action=type(action).__name__, error=str(e))
        return current

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that removes it again."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe
