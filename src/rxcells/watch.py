"""watch() — subscribe a callback to a reactive node.

The callback runs once immediately with the current value, then again after
every change notification, always with a fresh untracked read of the node.
Returns a WatchHandle for cleanup via .dispose().
"""

from __future__ import annotations

from typing import Callable, TypeVar

from rxcells.core import Reactive, Unsubscribe

T = TypeVar("T")


class WatchHandle:
    """Disposable subscription. After dispose() the callback never runs again."""

    __slots__ = ("_source", "_callback", "_unsubscribe")

    def __init__(self, source: Reactive[T], callback: Callable[[T], None]) -> None:
        self._source: Reactive[T] | None = source
        self._callback: Callable[[T], None] | None = callback
        self._unsubscribe: Unsubscribe | None = None

    @property
    def disposed(self) -> bool:
        return self._callback is None

    def _fire(self, _value: object = None) -> None:
        # Both are None once disposed; a notification already in flight is dropped.
        source, callback = self._source, self._callback
        if source is not None and callback is not None:
            callback(source.peek())

    def dispose(self) -> None:
        """Stop watching. Safe to call more than once."""
        unsubscribe = self._unsubscribe
        self._source = self._callback = self._unsubscribe = None
        if unsubscribe is not None:
            unsubscribe()

    def __repr__(self) -> str:
        state = "disposed" if self.disposed else f"watching {self._source!r}"
        return f"WatchHandle({state})"


def watch(source: Reactive[T], callback: Callable[[T], None]) -> WatchHandle:
    """Call callback with source's value now and after every change.

    Usage:
        count = State(1)
        doubled = Computed(lambda: count.use() * 2)
        log = []

        handle = watch(doubled, log.append)
        # log == [2] — ran immediately

        count.set(5)
        # log == [2, 10]

        handle.dispose()
        count.set(6)
        # log == [2, 10] — stopped
    """
    handle = WatchHandle(source, callback)
    callback(source.peek())
    handle._unsubscribe = source.on_change(handle._fire)
    return handle
