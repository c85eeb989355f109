"""
Change notification for view-model state.

Listeners are plain callables taking (change, source). They run
synchronously, in registration order, on the event loop thread that
mutated the state. A listener that raises is logged and skipped so one
broken subscriber cannot stop the others from seeing the change.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, List

logger = logging.getLogger("taskdeck.state.observable")


class Change(str, Enum):
    """What part of the state changed."""
    TASKS = "tasks"
    FILTERS = "filters"
    SORT = "sort"
    SELECTION = "selection"
    LOADING = "loading"
    ERROR = "error"


Listener = Callable[[Change, Any], None]


class Observable:
    """Mixin holding a listener list with subscribe / notify."""

    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register listener. Returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _notify(self, change: Change) -> None:
        for listener in list(self._listeners):
            try:
                listener(change, self)
            except Exception:
                logger.exception(f"Listener {listener!r} failed on '{change.value}' change")

    def _clear_listeners(self) -> None:
        self._listeners.clear()
