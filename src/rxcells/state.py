"""State — the writable source of truth.

A State holds one value. Reading it with ``use()`` inside a Computed
registers the dependency; ``peek()`` and ``value`` never do. Writing a value
that differs from the current one invalidates every dependent first, then
calls the change listeners, so listeners always see consistent derived state.

Thread safety: call set_scheduler() once from the owning thread. After that,
any .set() from a background thread is handed to the scheduler instead of
running inline. Owning-thread writes remain synchronous.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Generic, TypeVar

from rxcells._tracking import track_dependency
from rxcells.computed import Computed
from rxcells.core import Dependent, Unsubscribe, invalidate_all, values_equal

T = TypeVar("T")
R = TypeVar("R")

logger = logging.getLogger("rxcells.state")

# ─── Auto-marshal ────────────────────────────────────────────────────────────
_scheduler: Callable[[Callable[[], None]], object] | None = None
_scheduler_thread: threading.Thread | None = None


def set_scheduler(scheduler: Callable[[Callable[[], None]], object] | None) -> None:
    """Set the global thread scheduler for cross-thread State writes.

    Call once from the owning thread:
        rxcells.set_scheduler(app.call_from_thread)

    After this, State.set() from any other thread is passed to ``scheduler``
    as a zero-argument callable. Pass None to go back to inline writes.
    """
    global _scheduler, _scheduler_thread
    _scheduler = scheduler
    _scheduler_thread = threading.current_thread() if scheduler is not None else None


def _foreign_thread() -> bool:
    return _scheduler is not None and threading.current_thread() is not _scheduler_thread


class State(Generic[T]):
    """A single writable value with dependents and change listeners."""

    __slots__ = ("_value", "_dependents", "_listeners")

    def __init__(self, value: T) -> None:
        self._value = value
        self._dependents: dict[Dependent, None] = {}
        self._listeners: dict[Callable[[T], None], None] = {}

    @property
    def value(self) -> T:
        """The current value. Never registers a dependency."""
        return self._value

    @value.setter
    def value(self, value: T) -> None:
        self.set(value)

    def peek(self) -> T:
        return self._value

    def use(self) -> T:
        """Read the value. If inside a derivation, registers the dependency."""
        track_dependency(self)
        return self._value

    def set(self, value: T) -> None:
        """Write a new value. Marshaled when called from a foreign thread."""
        if _foreign_thread():
            logger.debug("Marshaling %r write from %s", self, threading.current_thread().name)
            _scheduler(lambda v=value: self._set_direct(v))
        else:
            self._set_direct(value)

    def _set_direct(self, value: T) -> None:
        if not self._equals(self._value, value):
            self._value = value
            self._changed()

    def _equals(self, a: T, b: T) -> bool:
        """Override for custom equality."""
        return values_equal(a, b)

    def _changed(self) -> None:
        # A failing derivation still lets the listeners hear about the write.
        try:
            self.notify_dependents()
        finally:
            for listener in list(self._listeners):
                listener(self._value)

    # --- Observable ---

    def add_dependent(self, dependent: Dependent) -> None:
        self._dependents[dependent] = None

    def remove_dependent(self, dependent: Dependent) -> None:
        self._dependents.pop(dependent, None)

    def notify_dependents(self) -> None:
        invalidate_all(self._dependents)

    def on_change(self, callback: Callable[[T], None]) -> Unsubscribe:
        """Register a listener. Returns a function that removes it."""
        self._listeners[callback] = None

        def _unsubscribe() -> None:
            self._listeners.pop(callback, None)

        return _unsubscribe

    # --- Derivations ---

    def map(self, selector: Callable[[T], R]) -> Computed[R]:
        """A Computed holding selector(value)."""
        return Computed(lambda: selector(self.use()))

    def filter(self, predicate: Callable[[T], bool]) -> Computed[bool]:
        """A Computed holding whether predicate(value) holds."""
        return Computed(lambda: bool(predicate(self.use())))

    def __repr__(self) -> str:
        return f"State({self._value!r})"
