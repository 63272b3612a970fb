"""Dependency tracking engine — the heart of rxcells.

While a Computed evaluates, every ``use()`` read lands here and registers an
edge from the source to the derivation being evaluated. Evaluations nest: a
derivation that reads a dirty derivation pushes a second frame, and each frame
keeps its own accumulator so inner reads never leak into the outer one.

The active tracker is looked up through a contextvar rather than a module
global, so a host that runs several independent graphs can give each its own.
"""

from __future__ import annotations

import contextvars
import logging
import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Callable, Generic, Iterator, NamedTuple, TypeVar

if TYPE_CHECKING:
    from rxcells.core import Dependent, Observable

T = TypeVar("T")

logger = logging.getLogger("rxcells.tracking")


class TrackResult(NamedTuple, Generic[T]):
    """Outcome of a tracked evaluation."""

    dependencies: dict[Observable, None]
    result: T


class Frame:
    """One in-progress evaluation: who is evaluating and what it has read."""

    __slots__ = ("dependent", "sources")

    def __init__(self, dependent: Dependent) -> None:
        self.dependent = dependent
        # Ordered set: first read wins the position.
        self.sources: dict[Observable, None] = {}


class DependencyTracker:
    """Stack of in-progress evaluations."""

    __slots__ = ("_stack", "_owner")

    def __init__(self) -> None:
        self._stack: list[Frame] = []
        # Thread ident for trackers created by get_tracker(); None when installed by hand.
        self._owner: int | None = None

    @property
    def current_dependent(self) -> Dependent | None:
        return self._stack[-1].dependent if self._stack else None

    @property
    def depth(self) -> int:
        return len(self._stack)

    @contextmanager
    def evaluating(self, dependent: Dependent) -> Iterator[Frame]:
        """Push a frame for ``dependent``; the frame is popped on every exit path."""
        frame = Frame(dependent)
        self._stack.append(frame)
        try:
            yield frame
        finally:
            self._stack.pop()

    def track(self, dependent: Dependent, fn: Callable[[], T]) -> TrackResult[T]:
        """Run fn as ``dependent``'s evaluation; return its result and what it read."""
        with self.evaluating(dependent) as frame:
            result = fn()
        return TrackResult(frame.sources, result)

    def track_dependency(self, source: Observable) -> None:
        """Record that the current evaluation read ``source``. No-op when idle."""
        if not self._stack:
            return
        frame = self._stack[-1]
        if source not in frame.sources:
            frame.sources[source] = None
            source.add_dependent(frame.dependent)

    def __repr__(self) -> str:
        return f"DependencyTracker(depth={len(self._stack)})"


# No default: every context, and every thread, gets its own tracker on first
# use, so one thread's frames are never visible to another.
_current_tracker: contextvars.ContextVar[DependencyTracker] = contextvars.ContextVar(
    "rxcells_tracker"
)


def get_tracker() -> DependencyTracker:
    """The tracker for the current context, created on first use."""
    tracker = _current_tracker.get(None)
    thread = threading.get_ident()
    if tracker is None or tracker._owner not in (None, thread):
        tracker = DependencyTracker()
        tracker._owner = thread
        _current_tracker.set(tracker)
    return tracker


@contextmanager
def use_tracker(tracker: DependencyTracker) -> Iterator[DependencyTracker]:
    """Install ``tracker`` for the current context until the block exits.

    Usage:
        with use_tracker(DependencyTracker()):
            total = Computed(lambda: a.use() + b.use())
    """
    logger.debug("Installing %r for current context", tracker)
    token = _current_tracker.set(tracker)
    try:
        yield tracker
    finally:
        _current_tracker.reset(token)


def track(dependent: Dependent, fn: Callable[[], T]) -> TrackResult[T]:
    return get_tracker().track(dependent, fn)


def track_dependency(source: Observable) -> None:
    get_tracker().track_dependency(source)
