"""
Minimal observable value for read-only state streams (login state, tracked folders).
"""

import logging
import threading
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Observable(Generic[T]):
    """Holds a value and notifies subscribers whenever it is set."""

    def __init__(self, initial: T):
        self._value = initial
        self._lock = threading.Lock()
        self._subscribers: list[Callable[[T], None]] = []

    @property
    def value(self) -> T:
        return self._value

    def subscribe(self, callback: Callable[[T], None], emit_current: bool = True) -> Callable[[], None]:
        """
        Register callback. Returns a function that unsubscribes it.

        The current value is delivered immediately unless emit_current=False.
        """
        with self._lock:
            self._subscribers.append(callback)
        if emit_current:
            callback(self._value)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def set(self, value: T):
        with self._lock:
            self._value = value
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(value)
            except Exception:
                # Subscriber errors are logged, not propagated
                logger.exception("Subscriber raised while handling update")
