"""Computed values — derived state with automatic dependency tracking.

A Computed wraps a function. It is evaluated once on construction; while the
function runs, every ``use()`` read is recorded as a dependency. When any
dependency changes the Computed turns dirty and passes the invalidation on
to its own dependents. A dirty Computed re-evaluates on the next read.

Computed values are lazy unless they are eager or somebody listens to them:
then they re-evaluate right away and notify listeners if the result changed.
"""

from __future__ import annotations

from typing import Callable, Generic, TypeVar, overload

from rxcells._tracking import get_tracker, track_dependency
from rxcells.core import Dependent, Observable, Unsubscribe, invalidate_all, values_equal
from rxcells.errors import ReadOnlyError

T = TypeVar("T")
R = TypeVar("R")

_UNSET = object()


class Computed(Generic[T]):
    """A derived value that auto-tracks dependencies and caches the result."""

    __slots__ = (
        "_fn",
        "_value",
        "_dirty",
        "_eager",
        "_dependencies",
        "_dependents",
        "_listeners",
    )

    def __init__(self, fn: Callable[[], T], *, eager: bool = False) -> None:
        self._fn = fn
        self._value = _UNSET
        self._dirty = True
        self._eager = eager
        self._dependencies: dict[Observable, None] = {}
        self._dependents: dict[Dependent, None] = {}
        self._listeners: dict[Callable[[T], None], None] = {}
        # Evaluate now so the initial edges exist before anyone writes.
        self._current()

    @property
    def value(self) -> T:
        """The current value, recomputed if dirty. Never registers a dependency."""
        return self.peek()

    @value.setter
    def value(self, value: T) -> None:
        self.set(value)

    def set(self, value: T) -> None:
        raise ReadOnlyError(f"cannot assign to {self!r}: derived values are computed")

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def eager(self) -> bool:
        """Whether invalidation recomputes immediately instead of on next read."""
        return self._eager

    @eager.setter
    def eager(self, eager: bool) -> None:
        self._eager = eager
        if eager and self._dirty:
            self._recompute()

    def peek(self) -> T:
        return self._current()

    def use(self) -> T:
        """Read the value. If inside a derivation, registers the dependency."""
        track_dependency(self)
        return self._current()

    def _current(self) -> T:
        if self._dirty:
            self._recompute()
        return self._value

    def _recompute(self) -> None:
        """Re-evaluate the function, tracking dependencies.

        On failure the cell stays dirty and keeps its previous value and edges.
        """
        with get_tracker().evaluating(self) as frame:
            try:
                value = self._fn()
            except Exception:
                for source in frame.sources:
                    if source not in self._dependencies:
                        source.remove_dependent(self)
                raise

        for source in self._dependencies:
            if source not in frame.sources:
                source.remove_dependent(self)
        self._dependencies = frame.sources
        self._value = value
        self._dirty = False

    def invalidate(self) -> None:
        """Called when a dependency changed.

        Marks dirty and propagates to dependents. Invalidating an already dirty
        Computed does not propagate again, so each node is visited at most once
        per write. An eager or observed Computed left dirty by a failed
        recompute retries here.
        """
        old = self._value
        if self._dirty:
            self._refresh(old)
            return
        self._dirty = True
        try:
            self.notify_dependents()
        finally:
            self._refresh(old)

    def _refresh(self, old: T) -> None:
        if self._eager or self._listeners:
            new = self._current()
            if not self._equals(old, new):
                self._emit(new)

    def _emit(self, value: T) -> None:
        for listener in list(self._listeners):
            listener(value)

    def _equals(self, a: T, b: T) -> bool:
        return values_equal(a, b)

    # --- Observable ---

    def add_dependent(self, dependent: Dependent) -> None:
        self._dependents[dependent] = None

    def remove_dependent(self, dependent: Dependent) -> None:
        self._dependents.pop(dependent, None)

    def notify_dependents(self) -> None:
        invalidate_all(self._dependents)

    def on_change(self, callback: Callable[[T], None]) -> Unsubscribe:
        """Register a listener. Returns a function that removes it.

        While at least one listener is registered the Computed recomputes as
        soon as it is invalidated. A dirty Computed is brought up to date
        first, so the listener hears about the next change.
        """
        self._current()
        self._listeners[callback] = None

        def _unsubscribe() -> None:
            self._listeners.pop(callback, None)

        return _unsubscribe

    # --- Derivations ---

    def map(self, selector: Callable[[T], R]) -> Computed[R]:
        return Computed(lambda: selector(self.use()))

    def filter(self, predicate: Callable[[T], bool]) -> Computed[bool]:
        return Computed(lambda: bool(predicate(self.use())))

    def dispose(self) -> None:
        """Disconnect from everything. A later read re-evaluates from scratch."""
        for source in self._dependencies:
            source.remove_dependent(self)
        self._dependencies = {}
        self._dependents.clear()
        self._listeners.clear()
        self._dirty = True
        self._value = _UNSET

    def __repr__(self) -> str:
        name = getattr(self._fn, "__name__", repr(self._fn))
        state = "dirty" if self._dirty else f"cached={self._value!r}"
        return f"{type(self).__name__}({name}, {state})"


class ComputedList(Computed[list[T]]):
    """A Computed whose value is a list.

    Reads hand out copies. ``map`` and ``filter`` work per element; use a plain
    Computed over ``use()`` to transform the list as a whole.
    """

    __slots__ = ()

    def peek(self) -> list[T]:
        return list(self._current())

    def use(self) -> list[T]:
        track_dependency(self)
        return list(self._current())

    def at(self, index: int, default: T | None = None) -> T | None:
        """Item at ``index``, or ``default`` when out of range. Tracked."""
        track_dependency(self)
        items = self._current()
        return items[index] if 0 <= index < len(items) else default

    def find(self, predicate: Callable[[T], bool], default: T | None = None) -> T | None:
        """First item satisfying predicate, or ``default``. Tracked."""
        track_dependency(self)
        return next((item for item in self._current() if predicate(item)), default)

    def size(self) -> int:
        track_dependency(self)
        return len(self._current())

    def map(self, selector: Callable[[T], R]) -> ComputedList[R]:
        return ComputedList(lambda: [selector(item) for item in self.use()])

    def filter(self, predicate: Callable[[T], bool]) -> ComputedList[T]:
        return ComputedList(lambda: [item for item in self.use() if predicate(item)])


@overload
def computed(fn: Callable[[], T], *, eager: bool = False) -> Computed[T]: ...


@overload
def computed(fn: None = None, *, eager: bool = False) -> Callable[[Callable[[], T]], Computed[T]]: ...


def computed(fn=None, *, eager=False):
    """Decorator/factory to create a Computed from a function.

    Usage:
        counter = State(0)

        @computed
        def doubled():
            return counter.use() * 2

        doubled.value  # 0
        counter.set(5)
        doubled.value  # 10

        @computed(eager=True)
        def tripled():
            return counter.use() * 3
    """
    if fn is None:
        return lambda f: Computed(f, eager=eager)
    return Computed(fn, eager=eager)
